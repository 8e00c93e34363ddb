"""Scenarios that populate a store with realistic plaza data."""

from plaza_billing.scenarios.demo_plaza import DemoPlazaScenario, previous_periods

__all__ = ["DemoPlazaScenario", "previous_periods"]
