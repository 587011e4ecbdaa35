"""
Orange Pi 5 Plus Board Definitions

Package sets, source repositories, Mali G610 blob locations and the
kernel configuration block applied on top of the selected defconfig.
"""

from typing import List, Tuple


# Host packages installed before anything is built
PREREQUISITE_PACKAGES: List[str] = [
    # Basic build tools
    "build-essential",
    "gcc-aarch64-linux-gnu",
    "g++-aarch64-linux-gnu",
    "libncurses-dev",
    "gawk",
    "flex",
    "bison",
    "openssl",
    "libssl-dev",
    "dkms",
    "libelf-dev",
    "libudev-dev",
    "libpci-dev",
    "libiberty-dev",
    "autoconf",
    "llvm",
    # Additional tools
    "git",
    "wget",
    "curl",
    "bc",
    "rsync",
    "kmod",
    "cpio",
    "python3",
    "python3-pip",
    "device-tree-compiler",
    # Ubuntu kernel packaging
    "fakeroot",
    "kernel-package",
    "pkg-config-dbgsym",
    # Mali GPU, OpenCL and Vulkan
    "mesa-opencl-icd",
    "vulkan-tools",
    "vulkan-utils",
    "vulkan-validationlayers",
    "libvulkan-dev",
    "ocl-icd-opencl-dev",
    "opencl-headers",
    "clinfo",
    # Media and hardware acceleration
    "va-driver-all",
    "vdpau-driver-all",
    "mesa-va-drivers",
    "mesa-vdpau-drivers",
    # Graphics development libraries
    "libegl1-mesa-dev",
    "libgles2-mesa-dev",
    "libgl1-mesa-dev",
    "libdrm-dev",
    "libgbm-dev",
    "libwayland-dev",
    "libx11-dev",
    "meson",
    "ninja-build",
]

# Kernel sources
VENDOR_KERNEL_REPO = "https://github.com/Joshua-Riek/linux-rockchip.git"
VENDOR_KERNEL_BRANCH = "ubuntu-rockchip-6.8-opi5"
MAINLINE_KERNEL_REPO = "https://git.kernel.org/pub/scm/linux/kernel/git/torvalds/linux.git"
PATCHES_REPO = "https://github.com/Joshua-Riek/ubuntu-rockchip.git"

KERNEL_SOURCE_DIRNAME = "linux"
PATCHES_DIRNAME = "ubuntu-rockchip"

GENERIC_DEFCONFIG = "defconfig"

# Mali G610 (Valhall, CSF) blobs
MALI_MIRROR = "https://github.com/JeffyCN/mirrors/raw/libmali"
MALI_FIRMWARE = "mali_csffw.bin"
MALI_DRIVER = "libmali-valhall-g610-g6p0-x11-wayland-gbm.so"
MALI_VULKAN_DRIVER = "libmali-valhall-g610-g6p0-wayland-gbm-vulkan.so"

MALI_FIRMWARE_URL = f"{MALI_MIRROR}/firmware/g610/{MALI_FIRMWARE}"
MALI_DRIVER_URL = f"{MALI_MIRROR}/lib/aarch64-linux-gnu/{MALI_DRIVER}"
MALI_VULKAN_DRIVER_URL = f"{MALI_MIRROR}/lib/aarch64-linux-gnu/{MALI_VULKAN_DRIVER}"

LIBMALI_REPO = "https://github.com/tsukumijima/libmali-rockchip.git"
LIBMALI_BRANCH = "libmali"
LIBMALI_DIRNAME = "libmali-src"

# API names the userspace driver answers to
MALI_API_LINKS: List[str] = [
    "libMali.so",
    "libMali.so.1",
    "libmali.so",
    "libmali.so.1",
    "libEGL.so.1",
    "libGLESv1_CM.so.1",
    "libGLESv2.so.2",
    "libgbm.so.1",
]
VULKAN_API_LINK = "libvulkan_mali.so"

OPENCL_ICD_NAME = "mali.icd"
VULKAN_ICD_NAME = "mali.json"
VULKAN_ICD_FORMAT_VERSION = "1.0.0"
VULKAN_API_VERSION = "1.2.131"

# (section comment, options) appended to .config after the defconfig
KERNEL_CONFIG_BLOCK: List[Tuple[str, List[str]]] = [
    ("RK3588 SoC support", [
        "CONFIG_ARCH_ROCKCHIP=y",
        "CONFIG_ARM64=y",
        "CONFIG_ROCKCHIP_RK3588=y",
        "CONFIG_COMMON_CLK_RK808=y",
        "CONFIG_ROCKCHIP_IOMMU=y",
        "CONFIG_ROCKCHIP_PM_DOMAINS=y",
        "CONFIG_ROCKCHIP_THERMAL=y",
    ]),
    ("Display and DRM", [
        "CONFIG_DRM=y",
        "CONFIG_DRM_ROCKCHIP=y",
        "CONFIG_ROCKCHIP_VOP2=y",
        "CONFIG_DRM_PANFROST=y",
        "CONFIG_DRM_PANEL_BRIDGE=y",
        "CONFIG_DRM_PANEL_SIMPLE=y",
    ]),
    ("Mali G610 GPU", [
        "CONFIG_MALI_MIDGARD=m",
        'CONFIG_MALI_PLATFORM_NAME="devicetree"',
        "CONFIG_MALI_CSF_SUPPORT=y",
        "CONFIG_MALI_DEVFREQ=y",
        "CONFIG_MALI_DMA_FENCE=y",
    ]),
    ("Memory management for GPU buffers", [
        "CONFIG_DMA_CMA=y",
        "CONFIG_CMA=y",
        "CONFIG_CMA_SIZE_MBYTES=128",
        "CONFIG_DMA_SHARED_BUFFER=y",
        "CONFIG_SYNC_FILE=y",
    ]),
    ("Board peripherals", [
        "CONFIG_PHY_ROCKCHIP_INNO_USB2=y",
        "CONFIG_PHY_ROCKCHIP_NANENG_COMBO_PHY=y",
        "CONFIG_ROCKCHIP_SARADC=y",
        "CONFIG_MMC_DW_ROCKCHIP=y",
        "CONFIG_PCIE_ROCKCHIP_HOST=y",
    ]),
    ("Hardware video codecs", [
        "CONFIG_STAGING_MEDIA=y",
        "CONFIG_VIDEO_ROCKCHIP_RGA=m",
        "CONFIG_VIDEO_ROCKCHIP_VDEC=m",
        "CONFIG_ROCKCHIP_VPU=y",
        "CONFIG_VIDEO_HANTRO=m",
    ]),
    ("CPU frequency scaling", [
        "CONFIG_CPU_FREQ=y",
        "CONFIG_CPU_FREQ_DEFAULT_GOV_ONDEMAND=y",
        "CONFIG_CPU_FREQ_GOV_PERFORMANCE=y",
        "CONFIG_CPU_FREQ_GOV_POWERSAVE=y",
        "CONFIG_CPU_FREQ_GOV_USERSPACE=y",
        "CONFIG_CPU_FREQ_GOV_SCHEDUTIL=y",
        "CONFIG_CPUFREQ_DT=y",
        "CONFIG_ARM_ROCKCHIP_CPUFREQ=y",
    ]),
    ("Framebuffer console", [
        "CONFIG_FB=y",
        "CONFIG_FB_SIMPLE=y",
        "CONFIG_LOGO=y",
        "CONFIG_LOGO_LINUX_CLUT224=y",
    ]),
]

# Host checks
MIN_FREE_SPACE_BYTES = 10 * 1024 ** 3
TESTED_MACHINES = ("aarch64", "x86_64")
DEBIAN_MARKER = "/etc/debian_version"


def kernel_config_lines() -> List[str]:
    """Flatten the configuration block into .config lines."""
    return [option for _, options in KERNEL_CONFIG_BLOCK for option in options]
