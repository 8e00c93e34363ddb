"""Faker-backed generators for demo plaza data."""

from plaza_billing.generators.base import BaseGenerator
from plaza_billing.generators.shop import ShopGenerator, StaffGenerator

__all__ = ["BaseGenerator", "ShopGenerator", "StaffGenerator"]
