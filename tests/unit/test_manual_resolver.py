"""
Unit tests for ManualResolver and its helpers.

Run: pytest tests/unit/test_manual_resolver.py -v
"""

import pytest

from services.manual_resolver import (
    ManualResolver,
    select_best_description,
    resolve_manual_name,
    build_file_name,
    DEFAULT_DESCRIPTION,
    DEFAULT_NAME,
)
from exceptions import (
    DatabaseError,
    MissingParameterError,
    ProductNotFoundError,
    ManualNotFoundError,
    FileNotAvailableError,
)

from tests.factories import ProductFactory, ManualFactory


# ===================
# HELPERS
# ===================

class TestSelectBestDescription:
    """Tests for select_best_description()"""

    def test_italian_wins_over_everything(self):
        descriptions = {"DE": "Handbuch", "EN": "Manual", "IT": "Manuale"}
        assert select_best_description(descriptions) == "Manuale"

    def test_english_when_no_italian(self):
        descriptions = {"FR": "Manuel", "EN": "Manual", "DE": "Handbuch"}
        assert select_best_description(descriptions) == "Manual"

    def test_first_inserted_when_neither(self):
        descriptions = {"FR": "Manuel", "DE": "Handbuch"}
        assert select_best_description(descriptions) == "Manuel"

    def test_empty_italian_counts_as_missing(self):
        descriptions = {"IT": "", "EN": "Manual"}
        assert select_best_description(descriptions) == "Manual"

    def test_empty_mapping_returns_default(self):
        assert select_best_description({}) == DEFAULT_DESCRIPTION

    @pytest.mark.parametrize("others", [
        {},
        {"EN": "Manual"},
        {"DE": "Handbuch", "EN": "Manual", "ES": "Manual ES"},
    ])
    def test_italian_value_always_chosen(self, others):
        descriptions = {**others, "IT": "Manuale"}
        assert select_best_description(descriptions) == "Manuale"


class TestResolveManualName:
    """Tests for resolve_manual_name()"""

    def test_stored_name_wins(self):
        assert resolve_manual_name("MVC_STD", [None, " Ventilatore 2000 "]) == "Ventilatore 2000"

    def test_known_code_name(self):
        assert resolve_manual_name("ROLLOUT", [None, ""]) == "Manuale Installazione Rollout"

    def test_unknown_code_gets_default(self):
        assert resolve_manual_name("XYZ", []) == DEFAULT_NAME


class TestBuildFileName:
    """Tests for build_file_name()"""

    def test_contains_code_language_revision(self):
        assert build_file_name("MVC_STD", "EN", "001") == "MVC_STD_EN_001.pdf"

    def test_missing_revision_uses_placeholder(self):
        assert build_file_name("MVC_STD", "IT", None) == "MVC_STD_IT_Rev001.pdf"


# ===================
# SEARCH
# ===================

class TestResolveManualsForSerial:
    """Tests for ManualResolver.resolve_manuals_for_serial()"""

    def test_groups_languages_of_one_manual(self, manual_store):
        """One product, IT and EN rows of revision 001 → one group."""
        # Arrange
        resolver = ManualResolver(manual_store)

        # Act
        result = resolver.resolve_manuals_for_serial("2504485")

        # Assert
        assert len(result.groups) == 1
        group = result.groups[0]
        assert group.serial_number == "2504485"
        assert group.manual_code == "MVC_STD"
        assert group.languages == ["IT", "EN"]
        assert group.description == "Manuale IT"
        assert group.file_urls == {"IT": "url-it", "EN": "url-en"}
        assert group.revision == "001"
        assert group.name == "Manuale Ventilatore Standard"

    def test_result_carries_rows_for_logging(self, manual_store):
        resolver = ManualResolver(manual_store)

        result = resolver.resolve_manuals_for_serial("  2504485  ")

        assert result.serial_number == "2504485"
        assert result.product_found is True
        assert len(result.products) == 1
        assert result.manuals_found == 2

    def test_no_product_returns_empty_result(self, mock_supabase):
        """A serial with no product is an empty result, not an error."""
        # Arrange
        mock_supabase.set_table_data("products", [])
        resolver = ManualResolver(mock_supabase)

        # Act
        result = resolver.resolve_manuals_for_serial("0000000")

        # Assert
        assert result.groups == []
        assert result.product_found is False

    def test_serial_match_is_exact(self, manual_store):
        resolver = ManualResolver(manual_store)

        result = resolver.resolve_manuals_for_serial("250448")

        assert result.groups == []

    def test_duplicate_language_rows_listed_once(self, mock_supabase):
        """Several rows per language still give each language once."""
        # Arrange
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="111", revision_code="001")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", file_url="it-old"),
            ManualFactory.create(language="EN"),
            ManualFactory.create(language="IT", file_url="it-new"),
            ManualFactory.create(language="EN"),
        ])
        resolver = ManualResolver(mock_supabase)

        # Act
        group = resolver.resolve_manuals_for_serial("111").groups[0]

        # Assert
        assert sorted(group.languages) == ["EN", "IT"]
        assert len(group.languages) == len(set(group.languages))
        # Newest row wins for a repeated language
        assert group.file_urls["IT"] == "it-new"

    def test_revision_isolation(self, mock_supabase):
        """A product of revision 002 never sees 001 or 003 rows."""
        # Arrange
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="222", revision_code="002")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", revision_code="001", file_url="rev1"),
            ManualFactory.create(language="IT", revision_code="002", file_url="rev2"),
            ManualFactory.create(language="EN", revision_code="003", file_url="rev3"),
        ])
        resolver = ManualResolver(mock_supabase)

        # Act
        result = resolver.resolve_manuals_for_serial("222")

        # Assert
        assert len(result.groups) == 1
        assert result.groups[0].languages == ["IT"]
        assert result.groups[0].file_urls == {"IT": "rev2"}
        assert result.groups[0].revision == "002"
        assert result.manuals_found == 1

    def test_revision_without_manuals_emits_no_group(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="333", revision_code="002")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", revision_code="001")
        ])
        resolver = ManualResolver(mock_supabase)

        result = resolver.resolve_manuals_for_serial("333")

        assert result.groups == []
        assert result.product_found is True

    def test_product_without_revision_sees_all_revisions(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="444", revision_code=None)
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", revision_code="001"),
            ManualFactory.create(language="EN", revision_code="002"),
        ])
        resolver = ManualResolver(mock_supabase)

        group = resolver.resolve_manuals_for_serial("444").groups[0]

        assert sorted(group.languages) == ["EN", "IT"]

    def test_product_without_manual_code_is_skipped(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="555", manual_code=None),
            ProductFactory.create(serial_number="555", manual_code="ROLLOUT"),
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(manual_code="ROLLOUT", language="IT")
        ])
        resolver = ManualResolver(mock_supabase)

        result = resolver.resolve_manuals_for_serial("555")

        assert [g.manual_code for g in result.groups] == ["ROLLOUT"]
        assert len(result.products) == 2

    def test_one_group_per_product_manual(self, mock_supabase):
        """Two products with the same serial give one group each."""
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="666", manual_code="MVC_STD"),
            ProductFactory.create(serial_number="666", manual_code="MAINTENANCE"),
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(manual_code="MVC_STD", language="IT"),
            ManualFactory.create(manual_code="MAINTENANCE", language="EN"),
        ])
        resolver = ManualResolver(mock_supabase)

        result = resolver.resolve_manuals_for_serial("666")

        assert [g.manual_code for g in result.groups] == ["MVC_STD", "MAINTENANCE"]

    def test_missing_descriptions_use_default(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="777")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="DE", description=None, file_url=None)
        ])
        resolver = ManualResolver(mock_supabase)

        group = resolver.resolve_manuals_for_serial("777").groups[0]

        assert group.description == DEFAULT_DESCRIPTION
        assert group.descriptions == {}
        assert group.file_urls == {}
        assert group.languages == ["DE"]

    @pytest.mark.parametrize("serial", [None, "", "   "])
    def test_blank_serial_raises_missing_parameter(self, mock_supabase, serial):
        resolver = ManualResolver(mock_supabase)

        with pytest.raises(MissingParameterError) as exc_info:
            resolver.resolve_manuals_for_serial(serial)

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"parameters": ["serial_number"]}

    def test_row_without_language_is_ignored(self, mock_supabase):
        """A manual row with a null language never becomes a language entry."""
        # Arrange
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="888")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", file_url="it-url", description="Manuale"),
            ManualFactory.create(language=None, file_url="orphan-url", description="Senza lingua"),
        ])
        resolver = ManualResolver(mock_supabase)

        # Act
        result = resolver.resolve_manuals_for_serial("888")

        # Assert
        assert len(result.groups) == 1
        group = result.groups[0]
        assert group.languages == ["IT"]
        assert group.file_urls == {"IT": "it-url"}
        assert group.description == "Manuale"
        assert result.manuals_found == 2

    def test_malformed_row_raises_database_error(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="999")
        ])
        mock_supabase.rows("products")[0]["id"] = None
        resolver = ManualResolver(mock_supabase)

        with pytest.raises(DatabaseError) as exc_info:
            resolver.resolve_manuals_for_serial("999")

        assert exc_info.value.details["query"] == "find_products_by_serial"

    def test_store_failure_raises_database_error(self, manual_store):
        # Arrange
        manual_store.fail_on("manuals", "select")
        resolver = ManualResolver(manual_store)

        # Act & Assert
        with pytest.raises(DatabaseError) as exc_info:
            resolver.resolve_manuals_for_serial("2504485")

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["query"] == "find_manuals"


# ===================
# DOWNLOAD
# ===================

class TestResolveDownload:
    """Tests for ManualResolver.resolve_download()"""

    def test_returns_file_reference(self, manual_store):
        # Arrange
        resolver = ManualResolver(manual_store)

        # Act
        result = resolver.resolve_download("2504485", "MVC_STD", "EN")

        # Assert
        assert result.file_url == "url-en"
        assert "MVC_STD" in result.file_name
        assert "EN" in result.file_name
        assert "001" in result.file_name
        assert result.manual.id == "man-en"
        assert result.product.id == "prod-1"

    def test_language_is_case_insensitive(self, manual_store):
        resolver = ManualResolver(manual_store)

        result = resolver.resolve_download("2504485", "MVC_STD", "it")

        assert result.file_url == "url-it"
        assert result.file_name == "MVC_STD_IT_001.pdf"

    def test_unknown_product_raises_product_not_found(self, manual_store):
        resolver = ManualResolver(manual_store)

        with pytest.raises(ProductNotFoundError) as exc_info:
            resolver.resolve_download("X", "Y", "IT")

        assert exc_info.value.code == "PRODUCT_NOT_FOUND"
        assert exc_info.value.status_code == 404

    def test_wrong_manual_code_is_product_not_found(self, manual_store):
        resolver = ManualResolver(manual_store)

        with pytest.raises(ProductNotFoundError):
            resolver.resolve_download("2504485", "ROLLOUT", "IT")

    def test_missing_language_raises_manual_not_found(self, manual_store):
        resolver = ManualResolver(manual_store)

        with pytest.raises(ManualNotFoundError) as exc_info:
            resolver.resolve_download("2504485", "MVC_STD", "DE")

        assert exc_info.value.code == "MANUAL_NOT_FOUND"
        assert exc_info.value.details["revision_code"] == "001"

    def test_other_revision_raises_manual_not_found(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="888", revision_code="002")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", revision_code="001")
        ])
        resolver = ManualResolver(mock_supabase)

        with pytest.raises(ManualNotFoundError):
            resolver.resolve_download("888", "MVC_STD", "IT")

    def test_manual_without_file_raises_file_not_available(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="999")
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(id="man-nofile", language="IT", file_url=None)
        ])
        resolver = ManualResolver(mock_supabase)

        with pytest.raises(FileNotAvailableError) as exc_info:
            resolver.resolve_download("999", "MVC_STD", "IT")

        assert exc_info.value.code == "FILE_NOT_AVAILABLE"
        assert exc_info.value.details["id"] == "man-nofile"

    def test_failure_stages_are_distinct(self):
        """Callers can tell the three failures apart."""
        stages = {ProductNotFoundError, ManualNotFoundError, FileNotAvailableError}
        for stage in stages:
            for other in stages - {stage}:
                assert not issubclass(stage, other)

    def test_product_without_revision_takes_newest_manual(self, mock_supabase):
        mock_supabase.set_table_data("products", [
            ProductFactory.create(serial_number="121", revision_code=None)
        ])
        mock_supabase.set_table_data("manuals", [
            ManualFactory.create(language="IT", revision_code="001", file_url="old"),
            ManualFactory.create(language="IT", revision_code="002", file_url="new"),
        ])
        resolver = ManualResolver(mock_supabase)

        result = resolver.resolve_download("121", "MVC_STD", "IT")

        assert result.file_url == "new"
        assert result.file_name == "MVC_STD_IT_Rev001.pdf"

    def test_all_missing_parameters_reported(self, mock_supabase):
        resolver = ManualResolver(mock_supabase)

        with pytest.raises(MissingParameterError) as exc_info:
            resolver.resolve_download("2504485", "", None)

        assert exc_info.value.details == {"parameters": ["manual_code", "language"]}

    def test_store_failure_raises_database_error(self, manual_store):
        manual_store.fail_on("products", "select")
        resolver = ManualResolver(manual_store)

        with pytest.raises(DatabaseError):
            resolver.resolve_download("2504485", "MVC_STD", "IT")
