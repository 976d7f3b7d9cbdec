"""
Tests for the labeling allocator.
"""

import pytest

from core.allocator import Allocator
from core.mutator import LabelMutator


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def abc(image_store, project):
    """Project with A (unlabeled), B (unlabeled), C (labeled)."""
    a = image_store.add_image_stub(project.id, "a.jpg")
    b = image_store.add_image_stub(project.id, "b.jpg")
    c = image_store.add_image_stub(project.id, "c.jpg")
    image_store.update_label_data(c, {"kind": "cat"})
    image_store.update_labeled(c, True)
    return a, b, c


class TestStatelessAllocation:

    def test_labeling_walkthrough(self, image_store, project, abc):
        """A then B are handed out, never C, then nothing."""
        a, b, c = abc
        allocator = Allocator(image_store)
        mutator = LabelMutator(image_store)

        assert allocator.allocate(project.id) == a

        mutator.set_labeled(a, True)
        assert allocator.allocate(project.id) == b

        mutator.set_labeled(b, True)
        assert allocator.allocate(project.id) is None

    def test_repeated_allocation_is_stable(self, image_store, project, abc):
        a, _, _ = abc
        allocator = Allocator(image_store)

        assert [allocator.allocate(project.id) for _ in range(3)] == [a, a, a]

    def test_fully_labeled_project_stays_empty(self, image_store, project):
        image_id = image_store.add_image_stub(project.id, "only.jpg")
        image_store.update_labeled(image_id, True)
        allocator = Allocator(image_store)

        for _ in range(3):
            assert allocator.allocate(project.id) is None

    def test_unknown_project_has_no_candidates(self, image_store):
        assert Allocator(image_store).allocate(12345) is None

    def test_unlabeling_makes_image_available_again(self, image_store, project, abc):
        _, _, c = abc
        allocator = Allocator(image_store)
        mutator = LabelMutator(image_store)
        for image_id in abc[:2]:
            mutator.set_labeled(image_id, True)

        mutator.set_labeled(c, False)
        assert allocator.allocate(project.id) == c

    def test_only_own_project(self, project_store, image_store, project):
        other = project_store.create(name="Other")
        image_store.add_image_stub(other.id, "elsewhere.jpg")

        assert Allocator(image_store).allocate(project.id) is None

    def test_concurrent_callers_may_share_an_image(self, fake_images):
        """Without leases two callers see the same image."""
        first = fake_images.add(1, "a.jpg")
        fake_images.add(1, "b.jpg")
        allocator = Allocator(fake_images)

        assert allocator.allocate(1) == first
        assert allocator.allocate(1) == first
        assert fake_images.reserve_calls == []


class TestLeasedAllocation:

    def test_leases_spread_callers(self, image_store, project, abc):
        a, b, _ = abc
        clock = FakeClock()
        allocator = Allocator(image_store, lease_seconds=60, clock=clock)

        assert allocator.allocate(project.id) == a
        assert allocator.allocate(project.id) == b

    def test_all_leased_falls_back_to_earliest_expiry(self, image_store, project, abc):
        a, b, _ = abc
        clock = FakeClock()
        allocator = Allocator(image_store, lease_seconds=60, clock=clock)
        allocator.allocate(project.id)
        clock.now += 10
        allocator.allocate(project.id)

        # a expires at 1060, b at 1070
        assert allocator.allocate(project.id) == a

    def test_expired_lease_is_reclaimed(self, image_store, project, abc):
        a, b, _ = abc
        clock = FakeClock()
        allocator = Allocator(image_store, lease_seconds=60, clock=clock)
        allocator.allocate(project.id)
        allocator.allocate(project.id)

        clock.now += 61
        assert allocator.allocate(project.id) == a
        assert image_store.get(a).lease_expires_at == clock.now + 60

    def test_never_returns_labeled_image(self, image_store, project, abc):
        a, b, c = abc
        allocator = Allocator(image_store, lease_seconds=60, clock=FakeClock())
        mutator = LabelMutator(image_store)

        seen = set()
        for _ in range(5):
            seen.add(allocator.allocate(project.id))
        assert c not in seen

        mutator.set_labeled(a, True)
        mutator.set_labeled(b, True)
        assert allocator.allocate(project.id) is None

    def test_lost_race_moves_to_next_candidate(self, fake_images):
        first = fake_images.add(1, "a.jpg")
        second = fake_images.add(1, "b.jpg")
        fake_images.lose_reservation_for.add(first)
        allocator = Allocator(fake_images, lease_seconds=30, clock=FakeClock())

        assert allocator.allocate(1) == second
        assert fake_images.reserve_calls == [first, second]

    def test_leased_images_are_skipped_without_reserving(self, fake_images):
        first = fake_images.add(1, "a.jpg")
        second = fake_images.add(1, "b.jpg")
        fake_images.get(first).lease_expires_at = 2000.0
        allocator = Allocator(fake_images, lease_seconds=30, clock=FakeClock(1000.0))

        assert allocator.allocate(1) == second
        assert fake_images.reserve_calls == [second]
