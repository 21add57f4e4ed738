"""Domain-level policies and business rules.

This package contains logic that defines *what* the business rules are
(tier allocation, revenue recognition, period states), independent from
*where* they are applied (services, repositories, etc.).
"""
