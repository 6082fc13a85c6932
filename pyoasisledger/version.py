# Minimum Oasis app version accepted by find_ledger_oasis_app()
MIN_APP_MAJOR_VERSION=0
MIN_APP_MINOR_VERSION=0
MIN_APP_PATCH_VERSION=3
MIN_APP_VERSION= (MIN_APP_MAJOR_VERSION, MIN_APP_MINOR_VERSION, MIN_APP_PATCH_VERSION)

# v0.1.0: initial version
# v0.1.1: structured status words for sign rejections
PYOASISLEDGER_MAJOR_VERSION=0
PYOASISLEDGER_MINOR_VERSION=1
PYOASISLEDGER_REVISION= 1
PYOASISLEDGER_VERSION= str(PYOASISLEDGER_MAJOR_VERSION) + '.' + str(PYOASISLEDGER_MINOR_VERSION) + '.' + str(PYOASISLEDGER_REVISION)
