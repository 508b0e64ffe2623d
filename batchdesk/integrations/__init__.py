from .erp_client import (
    DiscardResidualSemiProductRequest,
    DiscardResidualSemiProductResult,
    ErpClientError,
    ErpManufactureType,
    ErpNotConfiguredError,
    HttpManufactureClient,
    ManufactureClient,
    NullManufactureClient,
    SubmitManufactureItem,
    SubmitManufactureRequest,
    build_manufacture_client,
)

__all__ = [
    'DiscardResidualSemiProductRequest',
    'DiscardResidualSemiProductResult',
    'ErpClientError',
    'ErpManufactureType',
    'ErpNotConfiguredError',
    'HttpManufactureClient',
    'ManufactureClient',
    'NullManufactureClient',
    'SubmitManufactureItem',
    'SubmitManufactureRequest',
    'build_manufacture_client',
]
