"""
Configuration validation for the fleet discipline API
Checks app.config at start-up and reports problems before requests are served
"""
import logging
from typing import Dict, List, Tuple, Any

logger = logging.getLogger(__name__)

class ConfigValidationError(Exception):
    """Raised when critical configuration is missing or invalid"""
    pass

def _as_positive_int(config: Dict[str, Any], key: str) -> int:
    value = config.get(key)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{key} must be an integer, got {value!r}")
    if number < 1:
        raise ConfigValidationError(f"{key} must be at least 1, got {number}")
    return number

def validate_discipline_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate warning threshold and pagination settings.

    Raises:
        ConfigValidationError: if a value cannot be used at all

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    config['WARNING_THRESHOLD'] = _as_positive_int(config, 'WARNING_THRESHOLD')
    default_limit = _as_positive_int(config, 'PAGINATION_DEFAULT_LIMIT')
    max_limit = _as_positive_int(config, 'PAGINATION_MAX_LIMIT')
    config['PAGINATION_DEFAULT_LIMIT'] = default_limit
    config['PAGINATION_MAX_LIMIT'] = max_limit

    if default_limit > max_limit:
        issues.append(
            f"PAGINATION_DEFAULT_LIMIT ({default_limit}) exceeds PAGINATION_MAX_LIMIT ({max_limit})"
        )

    if config.get('BACKGROUND_TASK_MODE') not in ('thread', 'inline'):
        issues.append("BACKGROUND_TASK_MODE should be 'thread' or 'inline'; falling back to 'thread'")
        config['BACKGROUND_TASK_MODE'] = 'thread'

    return len(issues) == 0, issues

def validate_security_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate JWT configuration.

    Returns:
        tuple: (is_valid: bool, issues: List[str])
    """
    issues = []

    secret = config.get('JWT_SECRET_KEY') or ''
    if len(secret) < 32:
        issues.append("JWT_SECRET_KEY should be at least 32 characters for security")

    if config.get('DEBUG'):
        issues.append("DEBUG mode is enabled - should be disabled in production")

    return len(issues) == 0, issues

def check_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run every validator and log the outcome.

    Returns:
        dict: Status information including issues
    """
    discipline_valid, discipline_issues = validate_discipline_config(config)
    security_valid, security_issues = validate_security_config(config)

    all_issues = discipline_issues + security_issues
    result = {
        'valid': discipline_valid and security_valid,
        'warning_threshold': config['WARNING_THRESHOLD'],
        'issues': all_issues
    }

    if result['valid']:
        logger.info("CONFIG: validation PASSED")
    else:
        logger.warning(f"CONFIG: validation found {len(all_issues)} issue(s)")
        for issue in all_issues:
            logger.warning(f"CONFIG: Issue - {issue}")

    return result
