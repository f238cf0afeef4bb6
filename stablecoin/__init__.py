"""
stablecoin - Overcollateralized Stablecoin Engine

A collateral engine that lets users lock approved tokens, mint a pegged
unit (DSC) against them, and lets third parties liquidate positions whose
health factor falls below the minimum.

Usage:
    from stablecoin import (
        Ledger, LedgerToken, StablecoinToken, StaticPriceFeed, StablecoinEngine,
    )

    chain = Ledger("chain")
    weth = LedgerToken(chain, "WETH", "Wrapped Ether")
    dsc = StablecoinToken(chain, owner="deployer")
    eth_usd = StaticPriceFeed(2000 * 10 ** 8)

    engine = StablecoinEngine([weth], [eth_usd], dsc)
    dsc.transfer_ownership("deployer", engine.address)

    # Fund and approve, then lock collateral and mint
    weth.issue("alice", 10 * 10 ** 18)
    weth.approve("alice", engine.address, 10 * 10 ** 18)
    engine.deposit_collateral_and_mint_dsc("alice", "WETH", 10 * 10 ** 18, 100 * 10 ** 18)

    engine.get_health_factor("alice")   # 100 * 10 ** 18
"""

# Core types and constants
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    build_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    token,
    stablecoin,
    zero_address_rule,
    SYSTEM_WALLET,
    ZERO_ADDRESS,
    UNIT_TYPE_TOKEN,
    UNIT_TYPE_STABLECOIN,
    PRECISION,
    FEED_PRECISION,
    ADDITIONAL_FEED_PRECISION,
    LIQUIDATION_THRESHOLD,
    LIQUIDATION_PRECISION,
    LIQUIDATION_BONUS,
    MIN_HEALTH_FACTOR,
    MAX_HEALTH_FACTOR,
    # Ledger / token errors
    LedgerError,
    TransferRuleViolation,
    UnitNotRegistered,
    WalletNotRegistered,
    TokenError,
    NotOwner,
    MustBeMoreThanZero,
    NotZeroAddress,
    BurnAmountExceedsBalance,
    # Engine errors
    EngineError,
    ValidationError,
    ZeroAmount,
    AssetNotAllowed,
    ConfigLengthMismatch,
    InvalidConfig,
    SolvencyError,
    HealthFactorBroken,
    HealthFactorOk,
    HealthFactorNotImproved,
    CollaboratorError,
    TransferFailed,
    MintFailed,
    OracleUnavailable,
    DivideByZero,
    FatalInvariantViolation,
    LedgerUnderflow,
    ReentrantCall,
)

# Token custody
from .ledger import Ledger, LedgerCheckpoint
from .tokens import Token, MintableToken, LedgerToken, StablecoinToken, require_success

# Prices
from .price_feed import RoundData, PriceFeed, StaticPriceFeed, TimeSeriesPriceFeed
from .oracle import PriceOracleAdapter

# Engine components
from .config import EngineConfig
from .accounts import CollateralLedger, DebtLedger, CollateralDeposited, CollateralRedeemed
from .health import AccountInformation, HealthFactorCalculator, calculate_health_factor
from .guard import ReentrancyGuard
from .mint_burn import MintBurnController
from .liquidation import LiquidationEngine, LiquidationResult
from .engine import StablecoinEngine

__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction',
    'build_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult',
    'token', 'stablecoin', 'zero_address_rule',
    'SYSTEM_WALLET', 'ZERO_ADDRESS', 'UNIT_TYPE_TOKEN', 'UNIT_TYPE_STABLECOIN',
    'PRECISION', 'FEED_PRECISION', 'ADDITIONAL_FEED_PRECISION',
    'LIQUIDATION_THRESHOLD', 'LIQUIDATION_PRECISION', 'LIQUIDATION_BONUS',
    'MIN_HEALTH_FACTOR', 'MAX_HEALTH_FACTOR',
    # Ledger / token errors
    'LedgerError', 'TransferRuleViolation', 'UnitNotRegistered', 'WalletNotRegistered',
    'TokenError', 'NotOwner', 'MustBeMoreThanZero', 'NotZeroAddress',
    'BurnAmountExceedsBalance',
    # Engine errors
    'EngineError', 'ValidationError', 'ZeroAmount', 'AssetNotAllowed',
    'ConfigLengthMismatch', 'InvalidConfig',
    'SolvencyError', 'HealthFactorBroken', 'HealthFactorOk', 'HealthFactorNotImproved',
    'CollaboratorError', 'TransferFailed', 'MintFailed', 'OracleUnavailable', 'DivideByZero',
    'FatalInvariantViolation', 'LedgerUnderflow', 'ReentrantCall',
    # Ledger and tokens
    'Ledger', 'LedgerCheckpoint', 'Token', 'MintableToken', 'LedgerToken', 'StablecoinToken', 'require_success',
    # Prices
    'RoundData', 'PriceFeed', 'StaticPriceFeed', 'TimeSeriesPriceFeed', 'PriceOracleAdapter',
    # Engine
    'EngineConfig', 'CollateralLedger', 'DebtLedger', 'CollateralDeposited', 'CollateralRedeemed',
    'AccountInformation', 'HealthFactorCalculator', 'calculate_health_factor',
    'ReentrancyGuard', 'MintBurnController', 'LiquidationEngine', 'LiquidationResult',
    'StablecoinEngine',
]

__version__ = '1.0.0'
