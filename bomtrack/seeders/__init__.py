"""
Seeders package for BomTrack.
Contains demo data seeding functionality.
"""

from .bom_demo_seeder import seed_bom_demo

__all__ = [
    'seed_bom_demo',
]
