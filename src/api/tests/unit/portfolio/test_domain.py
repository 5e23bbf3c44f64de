"""Unit tests for portfolio domain objects."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from portfolio.domain.cascade import CascadeReport, CascadeState
from portfolio.domain.hierarchy import (
    HIERARCHY,
    EntityType,
    ancestor_fields_of,
    children_of,
    immediate_parent,
    scoped_collections,
)
from portfolio.domain.value_objects import (
    DeletionTag,
    FileReference,
    file_references,
    format_etag,
    parse_etag,
)


class TestHierarchy:
    """Tests for the declarative hierarchy table."""

    def test_every_link_uses_parent_reference_field(self):
        for link in HIERARCHY:
            assert link.foreign_key == link.parent.reference_field

    def test_customer_children(self):
        children = {link.child for link in children_of(EntityType.CUSTOMER)}
        assert children == {EntityType.SITE, EntityType.DOCUMENT}

    def test_leaf_types_have_no_children(self):
        for leaf in (EntityType.ASSET, EntityType.OCCUPANT_TENANT, EntityType.DOCUMENT):
            assert children_of(leaf) == ()

    def test_asset_ancestor_fields(self):
        assert ancestor_fields_of(EntityType.ASSET) == (
            "customer_id",
            "site_id",
            "building_id",
            "floor_id",
        )

    def test_customer_has_no_ancestors(self):
        assert ancestor_fields_of(EntityType.CUSTOMER) == ()

    def test_immediate_parent_is_deepest_reference(self):
        link = immediate_parent(
            EntityType.ASSET,
            {"customer_id": "C1", "building_id": "B1", "floor_id": "F1"},
        )
        assert link is not None
        assert link.parent is EntityType.FLOOR

    def test_asset_may_attach_to_building(self):
        link = immediate_parent(EntityType.ASSET, {"building_id": "B1"})
        assert link is not None
        assert link.parent is EntityType.BUILDING

    def test_invalid_parent_type_has_no_link(self):
        assert immediate_parent(EntityType.FLOOR, {"site_id": "S1"}) is None

    def test_collections_are_plural(self):
        assert EntityType.OCCUPANT_TENANT.collection == "occupant_tenants"
        assert len(scoped_collections()) == len(EntityType)


class TestVersionTokens:
    """Tests for weak ETag formatting and parsing."""

    def test_format(self):
        assert format_etag(3) == 'W/"v3"'

    def test_parse_valid(self):
        assert parse_etag('W/"v12"') == 12

    def test_parse_tolerates_surrounding_whitespace(self):
        assert parse_etag(' W/"v0" ') == 0

    @pytest.mark.parametrize(
        "value", ['"v3"', 'W/"3"', 'W/"v-1"', 'W/"vabc"', "", "v3"]
    )
    def test_parse_malformed_returns_none(self, value):
        assert parse_etag(value) is None


class TestFileReferences:
    """Tests for locating file objects on records."""

    def test_document_single_file(self):
        record = {"file": {"bucket_ref": "docs", "object_key": "a.pdf"}}
        assert file_references(EntityType.DOCUMENT, record) == [
            FileReference("docs", "a.pdf")
        ]

    def test_asset_file_list_skips_incomplete_entries(self):
        record = {
            "files": [
                {"bucket_ref": "assets", "object_key": "pump.jpg"},
                {"bucket_ref": "assets"},
                "not-a-file",
            ]
        }
        assert file_references(EntityType.ASSET, record) == [
            FileReference("assets", "pump.jpg")
        ]

    def test_types_without_files(self):
        record = {"file": {"bucket_ref": "docs", "object_key": "a.pdf"}}
        assert file_references(EntityType.BUILDING, record) == []

    def test_deletion_tag_for_file(self):
        tagged_at = datetime(2026, 3, 1, tzinfo=UTC)
        tag = DeletionTag.for_file(FileReference("docs", "a.pdf"), tagged_at, 90)
        assert tag.bucket_ref == "docs"
        assert tag.object_key == "a.pdf"
        assert tag.retention_days == 90


class TestCascadeReport:
    """Tests for cascade state progression."""

    def test_states_advance_in_order(self):
        report = CascadeReport(root_type=EntityType.SITE, root_id="S1")
        for state in (
            CascadeState.DESCENDANTS_ENUMERATED,
            CascadeState.DESCENDANTS_MARKED,
            CascadeState.FILES_TAGGED,
            CascadeState.ROOT_MARKED,
            CascadeState.COMPLETED,
        ):
            report.advance(state)
        assert report.completed

    def test_skipping_a_state_is_rejected(self):
        report = CascadeReport(root_type=EntityType.SITE, root_id="S1")
        with pytest.raises(ValueError):
            report.advance(CascadeState.ROOT_MARKED)

    def test_failure_keeps_last_completed_state(self):
        report = CascadeReport(root_type=EntityType.SITE, root_id="S1")
        report.advance(CascadeState.DESCENDANTS_ENUMERATED)
        report.fail("store unavailable")

        assert report.state is CascadeState.FAILED
        assert report.last_completed is CascadeState.DESCENDANTS_ENUMERATED
        with pytest.raises(ValueError):
            report.advance(CascadeState.DESCENDANTS_MARKED)

    def test_as_dict_counts_layers(self):
        report = CascadeReport(root_type=EntityType.SITE, root_id="S1")
        report.layer(1, EntityType.BUILDING).marked = 2
        report.layer(2, EntityType.FLOOR).marked = 1

        body = report.as_dict()

        assert body["descendantsMarked"] == 3
        assert body["rootType"] == "site"
        assert [layer["entityType"] for layer in body["layers"]] == [
            "building",
            "floor",
        ]
