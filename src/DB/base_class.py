"""
src/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base for the map data service models (SQLAlchemy 2.0 style).

Convention:
----------
Table names default to the lowercase class name; every current model
overrides it with an explicit plural name:
    - Device → devices
    - GPS_data → gps_data
    - PointOfInterest → points_of_interest
"""

from sqlalchemy.orm import DeclarativeBase, declared_attr


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models of the service.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """
        Generate table name from class name using lowercase convention.

        Returns:
            str: Lowercase version of the class name
        """
        return cls.__name__.lower()
