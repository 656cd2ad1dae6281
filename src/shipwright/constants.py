# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "rsv": "shipwright.resolver",
    "resolver": "shipwright.resolver",
    "asm": "shipwright.assembler",
    "stg": "shipwright.stages",
    "stages": "shipwright.stages",
    "dkr": "shipwright.docker",
    "build": "shipwright.docker.builder",
    "bld": "shipwright.docker.builder",
    "pub": "shipwright.docker.publisher",
    "pipe": "shipwright.pipeline",
    "conf": "shipwright.config",
    "trg": "shipwright.datacls.trigger",
}

# Top-level modules within shipwright for auto-prefixing
KNOWN_TOP_MODULES = {
    "resolver",
    "assembler",
    "stages",
    "docker",
    "pipeline",
    "config",
    "datacls",
    "rules",
    "utils",
    "cli",
}

LOG_LEVELS_ENV = "SHIPW_LOG_LEVELS"

# --- Filenames and Paths ---
DEFAULT_CONFIG_FILENAME = "release.yml"
DEFAULT_MANIFEST = "Cargo.toml"
DEFAULT_DOCKERFILE = "deploy/Dockerfile"
DOCKERFILE_TEMPLATE = "Dockerfile.j2"

# --- Version Resolver ---
# The manifest's metadata header is expected within this many leading lines
VERSION_SCAN_LINES = 5
VERSION_KEY = "version"

# --- Tags ---
FLOATING_TAG = "latest"

# --- Stages ---
BUILDER_STAGE = "builder"
BASE_STAGE = "base"
ROOTLESS_STAGE = "rootless"
PUBLISH_TARGET = BASE_STAGE
ROOT_USER = "root"

DEFAULT_BUILDER_IMAGE = "rust:1.66.0-bullseye"
DEFAULT_BUILDER_WORKDIR = "/app"
DEFAULT_LOCK_FILES = ["Cargo.toml", "Cargo.lock"]
DEFAULT_SOURCES = ["src", "imgs"]
DEFAULT_BUILD_COMMAND = "cargo build --release --bin {name} --features=all"
DEFAULT_ARTIFACT = "/app/target/release/{name}"

DEFAULT_BASE_IMAGE = "debian:bullseye-20211201-slim"
DEFAULT_BINARY_DIR = "/usr/local/bin"
DEFAULT_RUNTIME_PACKAGES = ["openssl", "ca-certificates", "tzdata"]
APT_LISTS_DIR = "/var/lib/apt/lists/*"
# Debian package name charset
PACKAGE_NAME_PATTERN = r"^[a-z0-9][a-z0-9+.-]*$"

DEFAULT_ROOTLESS_UID = 1000

# --- Platforms ---
DEFAULT_PLATFORMS = ["linux/amd64"]

# --- Registry ---
DEFAULT_USERNAME_ENV = "DOCKERHUB_USERNAME"
DEFAULT_TOKEN_ENV = "DOCKERHUB_TOKEN"

# --- Reproducibility ---
SOURCE_DATE_EPOCH_ARG = "SOURCE_DATE_EPOCH"
