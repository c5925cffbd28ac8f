"""Constants for the comprakt build driver."""

# Name of the compiler binary produced by `cargo build`
ARTIFACT_NAME = "comprakt"

# Phases in execution order, never reordered
PHASE_ORDER = ("clean", "fmt", "lint", "build", "test", "check")

# Bundle applied by the `--ci` shortcut (emulates the CI build)
DEFAULT_CI_BUNDLE = {
    "clean": False,
    "fmt": True,
    "lint": True,
    "build": False,
    "test": True,
    "check": False,
}

DEFAULT_LAUNCH_PROFILE = "release"

# Differential reference corpus
DEFAULT_MJTEST_REPO = "https://git.scc.kit.edu/IPDSnelting/mjtest.git"
DEFAULT_MJTEST_DIRNAME = "mjtest"
DEFAULT_MJTEST_TIMEOUT_S = 10

# Environment handle the integration suite reads the binary location from
COMPILER_BINARY_ENV = "COMPILER_BINARY"

DEFAULT_INTEGRATION_COMMAND = [
    "cargo", "test", "--release", "--package", "integration-tests",
]
