from setuptools import setup, find_packages

# Check if PyGObject (gi) is already available system-wide
# This prevents pip from trying to build PyGObject from source when it's
# already installed via system package manager (apt, pacman, etc.)
_HAS_PYGOBJECT = False
try:
    import gi
    gi.require_version('GLib', '2.0')
    from gi.repository import GLib
    _HAS_PYGOBJECT = True
except (ImportError, ValueError, AttributeError):
    _HAS_PYGOBJECT = False

# Base requirements - always needed
install_requires = [
    "dbus-python>=1.2.0",
    "PyYAML>=6.0",
    "aiorwlock>=1.3.0",
]

# PyGObject runs the GLib main loop that delivers D-Bus discovery signals.
# If not system-installed, add it to install_requires
# If system-installed, offer it as the "gi" extra for users who want pip to manage it
if not _HAS_PYGOBJECT:
    install_requires.append("PyGObject>=3.48.0")
    _pygobject_extras = {}
else:
    _pygobject_extras = {
        "gi": ["PyGObject>=3.48.0"],
    }

setup(
    name="bluemgr",
    version="0.3.0",
    description="Bluetooth adapter and device manager for BlueZ hosts",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=install_requires,
    extras_require={
        **_pygobject_extras,
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        'console_scripts': [
            'bluemgr=bluemgr.cli:main',
        ],
    },
    python_requires='>=3.9',
)
