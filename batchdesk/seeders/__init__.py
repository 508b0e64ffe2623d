from .demo_catalog_seeder import DEMO_SEMIPRODUCT_CODE, seed_demo_catalog

__all__ = ['DEMO_SEMIPRODUCT_CODE', 'seed_demo_catalog']
