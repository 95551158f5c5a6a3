"""
Registry name -> schema validator
"""
from core.validators.base import RegistryValidator
from core.validators.curators import CuratorsValidator
from core.validators.custom_warnings import CustomWarningsValidator
from core.validators.exchange_rates import ExchangeRatesValidator
from core.validators.oracle_prices import OraclePricesValidator
from core.validators.oracle_vaults import OracleVaultsValidator
from core.validators.points import PointsValidator
from core.validators.price_feeds import PriceFeedsValidator
from core.validators.spot_prices import SpotPricesValidator
from core.validators.tokens import TokensValidator
from core.validators.vaults import VaultsV2Validator, VaultsValidator

VALIDATORS: dict[str, RegistryValidator] = {
    validator.registry: validator
    for validator in (
        TokensValidator(),
        PriceFeedsValidator(),
        OracleVaultsValidator(),
        ExchangeRatesValidator(),
        SpotPricesValidator(),
        OraclePricesValidator(),
        CuratorsValidator(),
        VaultsValidator(),
        VaultsV2Validator(),
        CustomWarningsValidator(),
        PointsValidator(),
    )
}


def get_validator(name: str) -> RegistryValidator:
    """Get the schema validator for a registry"""
    try:
        return VALIDATORS[name]
    except KeyError:
        raise KeyError(f"No validator for registry: {name}") from None
