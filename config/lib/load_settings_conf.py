"""Settings configuration loader module.

This module handles loading and parsing of the settings.conf file which contains
the marketplace simulation settings: contract addresses, settlement timing and
the wallet provider to use.

The settings file uses INI format with a [DEFAULT] section containing key-value pairs.
Every setting has a default, so the file itself is optional.

Example settings.conf:
    [DEFAULT]
    settlement_delay = 2
    wallet_provider = rpc
    wallet_rpc_url = http://127.0.0.1:8545

Raises:
    SettingsError: If the settings file is invalid or a setting fails validation
"""
from configparser import ConfigParser, Error as ConfigParserError
from pathlib import Path
from typing import Dict, Any, List, Optional
import os

class ConfigValidationError:
    """Helper class to format configuration validation errors"""
    def __init__(self):
        self.invalid: List[str] = []
        self.unknown: List[str] = []

    def has_errors(self) -> bool:
        """Check if any errors exist"""
        return bool(self.invalid or self.unknown)

    def format_message(self) -> str:
        """Format error message in a clean, readable way"""
        messages = []

        if self.invalid:
            messages.append("Invalid settings:")
            messages.extend(f"  - {item}" for item in self.invalid)

        if self.unknown:
            if messages:
                messages.append("")
            messages.append("Unknown settings:")
            messages.extend(f"  - {item}" for item in self.unknown)

        return "\n".join(messages)

class SettingsError(Exception):
    """Raised when there are issues loading or parsing the settings configuration."""
    pass

WALLET_PROVIDERS = ('fake', 'rpc', 'none')

# Default settings
DEFAULTS = {
    'settlement_delay': '2',  # Seconds of simulated block confirmation
    'mint_on_create': 'true',  # Route product creation through a mint transaction
    'marketplace_contract_address': '0xMockMarketplaceContract0123456789abc',
    'registry_contract_address': '0xMockProductRegistryContract0123456789',
    'wallet_provider': 'fake',
    'wallet_rpc_url': 'http://127.0.0.1:8545',
    'fake_accounts': '0x9f2a5B1c7D3e4F60718293a4b5C6d7E8f9012345',
    'signer_timeout': '0',  # 0 disables the timeout around signer calls
    'snapshot_path': 'data/market_snapshot.json',
    'seed_demo_data': 'true',
    'notification_history': '100'
}

def load_settings_conf(settings_path: str = ".") -> Dict[str, Any]:
    """Load and parse settings.conf, falling back to defaults

    Args:
        settings_path: Directory containing settings.conf

    Returns:
        Dictionary containing validated settings

    Raises:
        SettingsError: If parsing fails or validation fails
    """
    config_path = Path(settings_path) / 'settings.conf'
    settings = dict(DEFAULTS)

    if config_path.exists():
        try:
            parser = ConfigParser()
            parser.read(config_path)
        except ConfigParserError as e:
            raise SettingsError(f"Error parsing settings.conf: {str(e)}")

        settings.update(parser['DEFAULT'])

    # Environment overrides, e.g. MARKET_SETTLEMENT_DELAY=0
    for key in DEFAULTS:
        env_value = os.environ.get(f"MARKET_{key.upper()}")
        if env_value is not None:
            settings[key] = env_value

    return validate_settings(settings)

def _parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    return None

def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Validate loaded settings.

    Args:
        settings: Dictionary of settings to validate

    Returns:
        Validated and processed settings

    Raises:
        SettingsError: If validation fails
    """
    errors = ConfigValidationError()
    result = dict(DEFAULTS)
    result.update(settings)

    errors.unknown.extend(sorted(set(settings) - set(DEFAULTS)))

    for key in ('settlement_delay', 'signer_timeout'):
        try:
            result[key] = float(result[key])
            if result[key] < 0:
                errors.invalid.append(f"{key}: must not be negative")
        except (TypeError, ValueError):
            errors.invalid.append(f"{key}: expected a number, got {result[key]!r}")

    try:
        result['notification_history'] = int(result['notification_history'])
        if result['notification_history'] < 1:
            errors.invalid.append("notification_history: must be at least 1")
    except (TypeError, ValueError):
        errors.invalid.append(
            f"notification_history: expected an integer, got {result['notification_history']!r}"
        )

    for key in ('mint_on_create', 'seed_demo_data'):
        parsed = _parse_bool(result[key])
        if parsed is None:
            errors.invalid.append(f"{key}: expected a boolean, got {result[key]!r}")
        else:
            result[key] = parsed

    result['wallet_provider'] = str(result['wallet_provider']).strip().lower()
    if result['wallet_provider'] not in WALLET_PROVIDERS:
        errors.invalid.append(
            f"wallet_provider: must be one of {', '.join(WALLET_PROVIDERS)}"
        )

    accounts = result['fake_accounts']
    if isinstance(accounts, str):
        accounts = [a.strip() for a in accounts.split(',') if a.strip()]
    result['fake_accounts'] = list(accounts)

    for key in ('marketplace_contract_address', 'registry_contract_address'):
        if not str(result[key]).startswith('0x'):
            errors.invalid.append(f"{key}: must be a 0x-prefixed address")

    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )

    return result
