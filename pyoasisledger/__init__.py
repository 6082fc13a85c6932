from .version import PYOASISLEDGER_VERSION as __version__
