"""Decoders for raw directory attribute values.

Every decoder is best-effort: missing or malformed input decodes to ``None``
or to a safe default, never to an exception.
"""
from datetime import datetime, timezone
from enum import Enum, IntFlag
from typing import Optional


# Seconds between 1601-01-01 and 1970-01-01
EPOCH_DELTA_SECONDS = 11_644_473_600
TICKS_PER_SECOND = 10_000_000
# 2100-01-01T00:00:00Z
MAX_TIMESTAMP_SECONDS = 4_102_444_800

GENERALIZED_TIME_FORMATS = (
    "%Y%m%d%H%M%S.%f%z",
    "%Y%m%d%H%M%S%z",
    "%Y%m%d%H%M%S.%f",
    "%Y%m%d%H%M%S",
)


class UserAccountControl(IntFlag):
    """userAccountControl bits used by the browser."""
    ACCOUNTDISABLE = 0x0002
    PASSWD_CANT_CHANGE = 0x0040
    SERVER_TRUST = 0x1000
    DOMAIN_CONTROLLER_TRUST = 0x2000
    DONT_EXPIRE_PASSWORD = 0x10000
    TRUSTED_FOR_DELEGATION = 0x80000


class GroupType(str, Enum):
    SECURITY = "security"
    DISTRIBUTION = "distribution"


class GroupScope(str, Enum):
    DOMAIN_LOCAL = "domain-local"
    GLOBAL = "global"
    UNIVERSAL = "universal"
    UNKNOWN = "unknown"


class ComputerType(str, Enum):
    WORKSTATION = "workstation"
    SERVER = "server"
    DOMAIN_CONTROLLER = "domain-controller"
    UNKNOWN = "unknown"


GROUP_SCOPES = {
    1: GroupScope.GLOBAL,
    2: GroupScope.DOMAIN_LOCAL,
    4: GroupScope.GLOBAL,
    8: GroupScope.UNIVERSAL,
}


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse an integer attribute value, returning None when absent or invalid."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_counter(value: Optional[str]) -> Optional[int]:
    """Parse a non-negative counter (logonCount, badPwdCount)."""
    number = parse_int(value)
    if number is None or number < 0:
        return None
    return number


def has_flag(user_account_control: Optional[int], flag: UserAccountControl) -> bool:
    """Check a userAccountControl bit. A missing value has no bits set."""
    if user_account_control is None:
        return False
    return bool(user_account_control & flag)


def is_enabled(user_account_control: Optional[int]) -> bool:
    """Account is enabled unless ACCOUNTDISABLE is set.

    A missing value is treated as enabled: absence never means disabled.
    """
    return not has_flag(user_account_control, UserAccountControl.ACCOUNTDISABLE)


def password_never_expires(user_account_control: Optional[int]) -> bool:
    return has_flag(user_account_control, UserAccountControl.DONT_EXPIRE_PASSWORD)


def cannot_change_password(user_account_control: Optional[int]) -> bool:
    return has_flag(user_account_control, UserAccountControl.PASSWD_CANT_CHANGE)


def is_trusted_for_delegation(user_account_control: Optional[int]) -> bool:
    return has_flag(user_account_control, UserAccountControl.TRUSTED_FOR_DELEGATION)


def group_type_from_value(value: int) -> GroupType:
    """Security when the high bit is set (or the signed value is negative)."""
    if value < 0 or value & 0x80000000:
        return GroupType.SECURITY
    return GroupType.DISTRIBUTION


def group_scope_from_value(value: int) -> GroupScope:
    return GROUP_SCOPES.get(value & 0x0000000F, GroupScope.UNKNOWN)


def computer_type_from(operating_system: Optional[str], user_account_control: Optional[int]) -> ComputerType:
    """Classify a machine from its OS string and account-control bits."""
    os_lower = (operating_system or "").lower()
    if has_flag(user_account_control, UserAccountControl.DOMAIN_CONTROLLER_TRUST):
        return ComputerType.DOMAIN_CONTROLLER
    if has_flag(user_account_control, UserAccountControl.SERVER_TRUST) or "server" in os_lower:
        return ComputerType.SERVER
    if any(name in os_lower for name in ("windows", "mac", "linux")):
        return ComputerType.WORKSTATION
    return ComputerType.UNKNOWN


def is_locked_out(lockout_time: Optional[str]) -> bool:
    """Lock state is presence-based: any parseable non-zero lockoutTime means locked."""
    value = parse_int(lockout_time)
    return value is not None and value != 0


def filetime_to_datetime(value: Optional[str]) -> Optional[datetime]:
    """Convert Windows FILETIME (100ns ticks since 1601-01-01) to an aware UTC datetime.

    Values <= 0 and results outside [1970-01-01, 2100-01-01) are rejected, which
    filters out sentinels such as "never expires" (0x7FFFFFFFFFFFFFFF).
    """
    ticks = parse_int(value)
    if ticks is None or ticks <= 0:
        return None
    seconds = ticks / TICKS_PER_SECOND - EPOCH_DELTA_SECONDS
    if not 0 <= seconds < MAX_TIMESTAMP_SECONDS:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def datetime_to_filetime(dt: datetime) -> int:
    """Inverse of filetime_to_datetime."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - datetime(1970, 1, 1, tzinfo=timezone.utc)
    microseconds = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    return microseconds * 10 + EPOCH_DELTA_SECONDS * TICKS_PER_SECOND


def parse_generalized_time(value: Optional[str]) -> Optional[datetime]:
    """Parse LDAP generalized time (YYYYMMDDHHMMSS[.f][Z|+hhmm]) as UTC."""
    if not value:
        return None
    text = value.strip()
    for fmt in GENERALIZED_TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def extract_cn(dn: Optional[str]) -> Optional[str]:
    """Return the CN value of a DN.

    "CN=John Doe,OU=Users,DC=example,DC=com" -> "John Doe"
    """
    if not dn:
        return None
    for component in dn.split(","):
        key, sep, value = component.partition("=")
        if sep and key.strip().upper() == "CN":
            return value.strip()
    return None


def display_name_from_dn(dn: str) -> str:
    """CN of a DN, or the DN itself when it has no CN component."""
    return extract_cn(dn) or dn


WELL_KNOWN_PRIMARY_GROUPS = {
    512: "Domain Admins",
    513: "Domain Users",
    514: "Domain Guests",
    515: "Domain Computers",
    516: "Domain Controllers",
    521: "Read-only Domain Controllers",
}


def primary_group_name(primary_group_id: Optional[int]) -> Optional[str]:
    """Name of a built-in primary group by RID; other groups stay unresolved."""
    if primary_group_id is None:
        return None
    return WELL_KNOWN_PRIMARY_GROUPS.get(primary_group_id)
