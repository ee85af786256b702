"""Default values for dcdeploy configuration and deployments."""

# Environment variables read by the CLI
ENV_VAR_MAP: dict[str, str] = {
    "root": "DCDEPLOY_ROOT",
    "env": "DCDEPLOY_ENV",
    "address": "NOMAD_ADDR",
}

DEFAULT_ENV = "production"
DEFAULT_ADDRESS = "http://127.0.0.1:4646"

# Repository layout
DATACENTERS_DIR = "datacenters"
DEPLOYMENT_FILE_NAMES = ("deployment.yml", "deployment.yaml")
DATACENTER_FILE_NAMES = ("config.yml", "config.yaml")
JOBS_DIR = "nomad"
JOBSETS = ("service", "system")
JOB_FILE_SUFFIXES = (".json", ".nomad", ".yml", ".yaml")
STATE_DIR = ".dcdeploy"

# Polling
DEFAULT_EVAL_POLL_INTERVAL = 1.0  # seconds
DEFAULT_EVAL_TIMEOUT = 600.0  # seconds
DEFAULT_STATUS_WAIT_TIME = 5.0  # seconds, server-side blocking wait
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds

# Scheduler node metadata keys used for placement constraints
META_DC_REGION = "${meta.dc_region}"
META_HOST_GROUP = "${meta.hostgroup}"
META_NODE = "${meta.node}"

# Variables interpolated by the scheduler at runtime, never at deploy time
RUNTIME_ENV_PREFIX = "NOMAD_"
