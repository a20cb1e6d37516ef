# =============================================================================
# tests/unit/test_domain.py
# Unit Tests for catalog entities, status codec, filter and sort
# =============================================================================

import pytest


class TestUserStatusCodec:
    """Test status encoding"""

    def test_every_status_decodes_back(self):
        from scentbox_core.domain import UserStatus, decode_status, encode_status

        for status in UserStatus:
            assert decode_status(encode_status(status)) is status

    def test_decode_tolerates_case_and_whitespace(self):
        from scentbox_core.domain import UserStatus, decode_status

        assert decode_status(" Owned ") is UserStatus.OWNED

    @pytest.mark.parametrize("raw", ["favourite", "", None])
    def test_unknown_value_is_corrupt(self, raw):
        from scentbox_core.domain import decode_status
        from scentbox_core.errors import CorruptRecordError

        with pytest.raises(CorruptRecordError):
            decode_status(raw)

    def test_labels(self):
        from scentbox_core.domain import UserStatus

        assert UserStatus.OWNED.label == "Collection"


class TestEntities:
    """Test entity validation"""

    def test_blank_name_rejected(self):
        from scentbox_core.domain import CatalogItem
        from scentbox_core.errors import DataValidationError

        with pytest.raises(DataValidationError):
            CatalogItem(id="a", name="   ")

    def test_missing_id_rejected(self):
        from scentbox_core.domain import CatalogItem
        from scentbox_core.errors import DataValidationError

        with pytest.raises(DataValidationError):
            CatalogItem(id="", name="Bleu")

    def test_all_notes_in_role_order(self, make_item):
        from scentbox_core.domain import Note

        item = make_item(
            "a", "Bleu",
            top_notes=[Note("Lemon")],
            mid_notes=[Note("Ginger")],
            base_notes=[Note("Cedar")],
        )

        assert [n.name for n in item.all_notes] == ["Lemon", "Ginger", "Cedar"]
        assert item.notes_for("mid")[0].name == "Ginger"

    def test_unknown_note_role(self, make_item):
        with pytest.raises(ValueError):
            make_item("a", "Bleu").notes_for("heart")

    @pytest.mark.parametrize("rating", [0, 6, 3.5])
    def test_review_rating_range(self, rating):
        from scentbox_core.domain import Review
        from scentbox_core.errors import DataValidationError

        with pytest.raises(DataValidationError):
            Review(id="r", item_id="a", title="t", text="x", rating=rating)


class TestPerfumeFilter:
    """Test filter value semantics"""

    def test_default_is_empty(self):
        from scentbox_core.domain import PerfumeFilter

        f = PerfumeFilter()

        assert f.is_empty
        assert f.active_count == 0
        assert not f.has_client_side_filters

    def test_rating_range_counts_once(self):
        from scentbox_core.domain import PerfumeFilter

        f = PerfumeFilter(brand_name="Dior", note_names=["Rose", "Oud"], min_rating=3, max_rating=5)

        assert f.active_count == 3
        assert f.has_client_side_filters

    def test_cache_key_ignores_list_order(self):
        from scentbox_core.domain import PerfumeFilter

        a = PerfumeFilter(note_names=["Rose", "Oud"], occasions=["Evening"])
        b = PerfumeFilter(note_names=("Oud", "Rose"), occasions=["Evening"])

        assert a.cache_key == b.cache_key

    def test_cache_key_differs_by_field(self):
        from scentbox_core.domain import PerfumeFilter

        assert PerfumeFilter(longevity="Long").cache_key != PerfumeFilter(sillage="Long").cache_key

    def test_filter_is_hashable(self):
        from scentbox_core.domain import PerfumeFilter

        assert len({PerfumeFilter(note_names=["Rose"]), PerfumeFilter(note_names=("Rose",))}) == 1

    def test_server_only_filter(self):
        from scentbox_core.domain import PerfumeFilter

        assert not PerfumeFilter(brand_name="Dior", concentration="EDP").has_client_side_filters


class TestSortOption:
    """Test remote and local orderings"""

    @pytest.mark.parametrize("sort, remote, local", [
        ("NAME_ASC", ("name", True), ("name", False)),
        ("NAME_DESC", ("name", False), ("name", True)),
        ("RATING_DESC", ("performance", False), ("performance", True)),
        ("NEWEST", ("created_at", False), ("created", True)),
    ])
    def test_orderings(self, sort, remote, local):
        from scentbox_core.domain import SortOption

        option = SortOption[sort]

        assert option.remote_order == remote
        assert option.local_order == local

    def test_every_option_has_label(self):
        from scentbox_core.domain import SortOption

        assert all(option.label for option in SortOption)
