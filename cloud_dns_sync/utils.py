import random

MAX_LABEL_LENGTH = 63

_random = random.Random()


def validate_hostname(hostname: str) -> bool:
    """
    Checks that a hostname has at least a subdomain within a zone and that
    no label exceeds 63 characters.

    Args:
        hostname: The hostname to validate, without trailing dot.

    Returns:
        True if the hostname can be used as a record name.
    """
    labels = hostname.split(".")
    if len(labels) < 2:
        return False
    return all(len(label) <= MAX_LABEL_LENGTH for label in labels)


def split_hostnames(hostnames: str) -> list[str]:
    """Splits the comma-separated hostnames annotation, keeping order."""
    return [hostname.strip() for hostname in hostnames.split(",")]


def apply_jitter(base: int) -> int:
    """
    Returns a sleep duration uniformly distributed in [0.75 * base, 1.25 * base).

    Args:
        base: The base interval in seconds.
    """
    deviation = int(0.25 * base)
    if deviation == 0:
        return base
    return base - deviation + _random.randrange(2 * deviation)
