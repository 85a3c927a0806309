"""
Project-wide constants or “settings” that are unlikely to change at runtime.
"""

# Kernel images in the order they are preferred for packaging
KERNEL_IMAGE_CANDIDATES = ("Image.gz-dtb", "Image.gz", "Image")
DTB_IMAGE = "dtb.img"
MODULES_DIR = "modules"

# Never copied into the flashable zip: top-level files, and directories at any depth
ZIP_EXCLUDE_TOP_LEVEL = {"README.md", ".gitignore"}
ZIP_EXCLUDE_DIRS = {".git"}
ZIP_EXCLUDE_SUFFIXES = (".zip",)
# Leftovers removed from the AnyKernel3 tree before a new image is copied in
ANYKERNEL_STALE_PATTERNS = ("*.zip", "Image*", "*.img")

MERGE_CONFIG_SCRIPT = "./scripts/kconfig/merge_config.sh"

TELEGRAM_API_URL = "https://api.telegram.org"
TELEGRAM_TIMEOUT = 30
TELEGRAM_UPLOAD_TIMEOUT = 300

KEYRING_SERVICE = "kbuildctl"
