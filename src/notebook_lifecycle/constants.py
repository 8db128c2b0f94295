# Logger Configuration
NAMESPACE = "notebook_lifecycle"
"""Application logger namespace for all components."""

# Notebook Instance Paths
DEFAULT_HOME = "/home/ec2-user"
"""Home directory of the notebook user on the instance."""

NOTEBOOK_DIR_NAME = "SageMaker"
"""Persistent notebook volume directory under the user's home."""

WORKING_DIR_NAME = "custom-miniconda"
"""Directory owning the Miniconda installation and its environments."""

MINICONDA_DIR_NAME = "miniconda"
"""Miniconda installation prefix inside the working directory."""

ENVS_DIR_NAME = "envs"
"""Environments root inside the Miniconda prefix."""

INSTALLER_FILE_NAME = "miniconda.sh"
"""File name of the downloaded installer payload."""

STATUS_FILE_NAME = "setup-status.json"
"""Structured setup status record."""

LEGACY_MARKER_FILE_NAME = "setup-complete"
"""Zero-byte completion marker written by the older lifecycle scripts."""

SETUP_LOG_FILE_NAME = "setup.log"
"""Log file receiving the detached create-phase output."""

# Process identity
BOOT_ID_PATH = "/proc/sys/kernel/random/boot_id"
"""Kernel boot id, regenerated on every boot."""

PROC_STAT_TEMPLATE = "/proc/{pid}/stat"
"""Per-process stat file holding the start time in clock ticks since boot."""

# Environment Defaults
DEFAULT_INSTALLER_URL = (
    "https://repo.anaconda.com/miniconda/Miniconda3-4.7.12.1-Linux-x86_64.sh"
)
"""Miniconda installer payload."""

DEFAULT_KERNEL_NAME = "tensorflow2_p39"
"""Name of the conda environment created by the create phase."""

DEFAULT_PYTHON_VERSION = "3.9"
"""Interpreter version pinned in the created environment."""

KERNEL_DISPLAY_NAME_TEMPLATE = "Custom ({name})"
"""Display name shown in the notebook UI for a registered environment."""

PYTORCH_CUDA_INDEX_URL = "https://download.pytorch.org/whl/cu118"
"""Package index serving CUDA 11.8 builds of PyTorch."""

DEFAULT_PACKAGE_PLAN = [
    {"tool": "conda", "packages": ["cudatoolkit=11.8", "cudnn"]},
    {"tool": "pip", "packages": ["ipykernel"]},
    {
        "tool": "pip",
        "packages": ["torch==2.1.0", "torchvision==0.16.0", "torchaudio==2.1.0"],
        "index_url": PYTORCH_CUDA_INDEX_URL,
    },
    {"tool": "pip", "packages": ["tensorflow==2.15.0"]},
    {
        "tool": "conda",
        "packages": ["setuptools", "tiktoken", "tqdm", "numpy", "pandas", "psutil"],
    },
    {"tool": "conda", "packages": ["jupyterlab==4.0"]},
    {"tool": "pip", "packages": ["matplotlib==3.7.1"]},
]
"""Ordered package installs applied to the created environment."""

# Command Execution
DEFAULT_COMMAND_TIMEOUT = 3600
"""Timeout in seconds for a single download or install command."""

# Notebook Server Restart
JUPYTER_SERVICE_NAME = "jupyter-server"
"""Service name of the notebook server on the instance."""

SYSTEMD_RUNTIME_DIR = "/run/systemd/system"
"""Present only when systemd is the running init system."""

UPSTART_CTL = "initctl"
"""Upstart control binary, available on Amazon Linux 1."""

SUPPORTED_INIT_SYSTEMS = ["systemd", "upstart"]
"""Init systems with a known notebook server restart command."""

# Environment Variable Overrides
ENV_PREFIX = "LIFECYCLE_"
"""Prefix of environment variables overriding configuration defaults."""
