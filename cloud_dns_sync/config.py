import logging
import os

# Get log level from environment variable or default to INFO
CLOUD_DNS_SYNC_LOG_LEVEL = os.environ.get("CLOUD_DNS_SYNC_LOG_LEVEL", "INFO").upper()
# Get dependencies log level from environment variable or default to WARNING
DEPENDENCIES_LOG_LEVEL = os.environ.get("DEPENDENCIES_LOG_LEVEL", "WARNING").upper()

# Configure logging
logging.basicConfig(
    level=getattr(logging, DEPENDENCIES_LOG_LEVEL, logging.WARNING),  # Set default level for all loggers
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Set specific level for cloud_dns_sync loggers
cloud_dns_sync_logger = logging.getLogger("cloud_dns_sync")
cloud_dns_sync_logger.setLevel(getattr(logging, CLOUD_DNS_SYNC_LOG_LEVEL, logging.INFO))

VERSION = "0.1.0"

# Google Cloud DNS
GOOGLE_CLOUD_DNS_PROJECT = os.environ.get("GOOGLE_CLOUD_DNS_PROJECT", "")
GOOGLE_CLOUD_DNS_ZONE = os.environ.get("GOOGLE_CLOUD_DNS_ZONE", "")
GOOGLE_APPLICATION_CREDENTIALS = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
DNS_RECORD_TTL = int(os.environ.get("DNS_RECORD_TTL", "300"))

# Annotations on Services and Ingresses
ANNOTATION_GOOGLE_CLOUD_DNS = "estafette.io/google-cloud-dns"
ANNOTATION_GOOGLE_CLOUD_DNS_HOSTNAMES = "estafette.io/google-cloud-dns-hostnames"
ANNOTATION_GOOGLE_CLOUD_DNS_STATE = "estafette.io/google-cloud-dns-state"

# Trigger loops
WATCH_TIMEOUT_SECONDS = int(os.environ.get("WATCH_TIMEOUT_SECONDS", "300"))
WATCH_RETRY_SECONDS = int(os.environ.get("WATCH_RETRY_SECONDS", "30"))
SWEEP_INTERVAL_SECONDS = int(os.environ.get("SWEEP_INTERVAL_SECONDS", "900"))
SHUTDOWN_GRACE_SECONDS = float(os.environ.get("SHUTDOWN_GRACE_SECONDS", "280"))

# HTTP endpoints
METRICS_PORT = int(os.environ.get("METRICS_PORT", "9101"))
LIVENESS_PORT = int(os.environ.get("LIVENESS_PORT", "5000"))


def missing_required_settings() -> list[str]:
    """Returns the names of required settings that are not set."""
    required = {
        "GOOGLE_CLOUD_DNS_PROJECT": GOOGLE_CLOUD_DNS_PROJECT,
        "GOOGLE_CLOUD_DNS_ZONE": GOOGLE_CLOUD_DNS_ZONE,
    }
    return [name for name, value in required.items() if not value]
