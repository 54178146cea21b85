[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvkern"
version = "0.1.0"
description = "Building blocks of a small RISC-V teaching kernel: printf-style formatting, ring buffers, timer alarms, a VirtIO register model, block I/O and a flat file-system image builder"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "risc-v", "virtio", "filesystem", "mkfs", "timer", "printf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rvkern-mkfs = "rvkern.mkfs:main"

[tool.hatch.build.targets.wheel]
packages = ["rvkern"]

[tool.pytest.ini_options]
addopts = "-ra"
