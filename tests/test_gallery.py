"""
Tests for the comparison gallery and snapshot labels.
"""

import uuid

import numpy as np
import pytest

from conftest import make_image
from filterstack.filters import FilterId
from filterstack.gallery import ComparisonGallery, NoPreviewError, Snapshot, format_label
from filterstack.state import EditState


def _state(label="Sepia", brightness=0.0):
    return EditState(FilterId.SEPIA, label, brightness)


class TestFormatLabel:

    @pytest.mark.parametrize(
        "label, brightness, expected",
        [
            ("Sepia", 0.2, "Sepia (+20%)"),
            ("Sepia", -0.33, "Sepia (-33%)"),
            ("Original", 0.0, "Original (+0%)"),
            ("Noir", 1.0, "Noir (+100%)"),
            ("Noir", -1.0, "Noir (-100%)"),
            ("Pixel", -0.001, "Pixel (+0%)"),
        ],
    )
    def test_label(self, label, brightness, expected):
        assert format_label(label, brightness) == expected


class TestSnapshot:

    def test_equality_is_identity_only(self):
        image = make_image()
        a = Snapshot(image=image, label="Sepia (+0%)")
        b = Snapshot(image=image, label="Sepia (+0%)")
        assert a != b
        assert a == Snapshot(image=make_image(seed=99), label="other", identity=a.identity)
        assert len({a, b}) == 2

    def test_identities_are_unique(self):
        image = make_image()
        ids = {Snapshot(image=image, label="x").identity for _ in range(100)}
        assert len(ids) == 100


class TestGallery:

    def test_commit_inserts_at_front(self):
        gallery = ComparisonGallery()
        a = gallery.commit(make_image(seed=1), _state("A"))
        b = gallery.commit(make_image(seed=2), _state("B"))
        c = gallery.commit(make_image(seed=3), _state("C"))
        assert list(gallery) == [c, b, a]

        gallery.remove(b.identity)
        assert list(gallery) == [c, a]

    def test_commit_labels(self):
        gallery = ComparisonGallery()
        snapshot = gallery.commit(make_image(), _state("Sepia", 0.2))
        assert snapshot.label == "Sepia (+20%)"
        assert gallery.labels == ["Sepia (+20%)"]

    def test_commit_copies_the_image(self):
        gallery = ComparisonGallery()
        preview = make_image()
        snapshot = gallery.commit(preview, _state())
        assert snapshot.image == preview
        assert not np.shares_memory(snapshot.image.pixels, preview.pixels)

    def test_commit_without_preview_is_a_no_op(self):
        gallery = ComparisonGallery()
        assert gallery.commit(None, _state()) is None
        assert len(gallery) == 0

    def test_commit_or_raise(self):
        with pytest.raises(NoPreviewError):
            ComparisonGallery().commit_or_raise(None, _state())

    def test_remove_unknown_identity_is_a_no_op(self):
        gallery = ComparisonGallery()
        gallery.commit(make_image(), _state())
        gallery.remove(uuid.uuid4())
        assert len(gallery) == 1

    def test_get(self):
        gallery = ComparisonGallery()
        snapshot = gallery.commit(make_image(), _state())
        assert gallery.get(snapshot.identity) is snapshot
        assert gallery.get(uuid.uuid4()) is None

    def test_listeners(self):
        gallery = ComparisonGallery()
        seen = []
        unsubscribe = gallery.subscribe(lambda g: seen.append(len(g)))
        snapshot = gallery.commit(make_image(), _state())
        gallery.remove(uuid.uuid4())
        gallery.remove(snapshot.identity)
        gallery.clear()
        unsubscribe()
        gallery.commit(make_image(), _state())
        assert seen == [1, 0]

    def test_iteration_is_a_snapshot_of_order(self):
        gallery = ComparisonGallery()
        first = gallery.commit(make_image(), _state())
        for snapshot in gallery:
            gallery.remove(snapshot.identity)
        assert gallery.get(first.identity) is None
