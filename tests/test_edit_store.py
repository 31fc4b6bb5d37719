from engine.crop_geometry import crops_equal, default_crop
from engine.edit_store import ItemEditStore
from engine.transform_algebra import identity, rotate_cw
from models.crop import Crop, CropRect
from models.lens import LensPosition


class TestRegistration:
    def test_register_materializes_defaults(self, items, memory_store):
        memory_store.register(items[0])
        assert "A" in memory_store
        assert len(memory_store) == 1
        assert crops_equal(memory_store.get_crop("A"), default_crop())
        assert memory_store.get_transform("A") == identity()

    def test_register_keeps_existing_edits(self, items, memory_store):
        memory_store.set_transform("A", rotate_cw(identity()))
        memory_store.register(items[0])
        assert memory_store.get_transform("A").rotate_steps == 1

    def test_unknown_item_gets_defaults(self, memory_store):
        assert memory_store.get_crop("missing").active is False
        assert memory_store.get_transform("missing") == identity()
        assert memory_store.get_lens("missing") is None

    def test_remove(self, items, memory_store):
        for item in items:
            memory_store.register(item)
        memory_store.set_lens("A", LensPosition(x=0, y=0, width=0.5, height=0.5))
        memory_store.remove(["A", "B", "not-there"])
        assert "A" not in memory_store
        assert memory_store.get_lens("A") is None
        assert len(memory_store) == 1

    def test_clear(self, items, memory_store):
        for item in items:
            memory_store.register(item)
        memory_store.clear()
        assert len(memory_store) == 0


class TestCropIsolation:
    def test_set_crop_copies(self, memory_store):
        crop = Crop(active=True, rect=CropRect(x=0.1, y=0.1, width=0.5, height=0.5))
        memory_store.set_crop("A", crop)
        crop.active = False
        assert memory_store.get_crop("A").active is True

    def test_get_crop_returns_copy(self, memory_store):
        memory_store.get_crop("A").active = True
        assert memory_store.get_crop("A").active is False

    def test_same_crop_for_two_items_not_shared(self, memory_store):
        crop = Crop(active=True, rect=CropRect(x=0.1, y=0.1, width=0.5, height=0.5))
        memory_store.set_crop("A", crop)
        memory_store.set_crop("B", crop)
        assert memory_store.get_crop("A").rect is not memory_store.get_crop("B").rect


class TestLensAndDirty:
    def test_set_and_clear_lens(self, memory_store):
        lens = LensPosition(x=0.1, y=0.1, width=0.2, height=0.2)
        memory_store.set_lens("A", lens)
        assert memory_store.get_lens("A") == lens
        memory_store.set_lens("A", None)
        assert memory_store.get_lens("A") is None

    def test_fresh_item_is_clean(self, items, memory_store):
        memory_store.register(items[0])
        assert not memory_store.is_dirty("A")
        assert not memory_store.is_dirty("never-seen")

    def test_transform_makes_dirty(self, memory_store):
        memory_store.set_transform("A", rotate_cw(identity()))
        assert memory_store.is_dirty("A")

    def test_crop_makes_dirty(self, memory_store):
        memory_store.set_crop("A", Crop(active=True))
        assert memory_store.is_dirty("A")

    def test_observer_attribute(self):
        calls = []
        store = ItemEditStore(on_state_change=calls.append)
        store.on_state_change("x")
        assert calls == ["x"]
        assert not hasattr(ItemEditStore(), "on_state_change")
