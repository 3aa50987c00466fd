"""Tests for the top-level package exports."""

import slot_scheduler


class TestPackageExports:
    def test_version(self):
        assert slot_scheduler.__version__ == "1.0.0"

    def test_all_names_resolve(self):
        for name in slot_scheduler.__all__:
            assert hasattr(slot_scheduler, name), name

    def test_core_entry_points(self):
        from slot_scheduler import SchedulerRegistry, TenantScheduler
        from slot_scheduler.scheduler import SchedulerRegistry as Registry

        assert SchedulerRegistry is Registry
        assert TenantScheduler.__module__ == "slot_scheduler.scheduler.tenant"
