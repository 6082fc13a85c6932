class LedgerConstants:

    # command class, selected from the app mode
    CLA_CONSUMER= 0x05
    CLA_VALIDATOR= 0xF5

    # instructions
    INS_GET_VERSION= 0x00
    INS_GET_ADDR_ED25519= 0x01
    INS_SIGN_ED25519= 0x02

    # p1 for INS_SIGN_ED25519
    PAYLOAD_CHUNK_INIT= 0x00
    PAYLOAD_CHUNK_ADD= 0x01
    PAYLOAD_CHUNK_LAST= 0x02

    # app modes as reported by the version query
    VALIDATOR_MODE= 1
    CONSUMER_MODE= 2
    UNKNOWN_MODE= 3

    # signer roles
    ROLE_ENTITY= "entity"
    ROLE_NODE= "node"
    ROLE_P2P= "p2p"
    ROLE_CONSENSUS= "consensus"

    # BIP44 purpose of the Validator app
    PATH_PURPOSE_CONSENSUS= 43
    PATH_LENGTH= 5
    HARDENED= 0x80000000

    # max data carried by one sign APDU
    USER_MESSAGE_CHUNK_SIZE= 250
    MAX_CONTEXT_SIZE= 255

    # GetAddress response: [pubkey(32) | bech32 address]
    PUBKEY_SIZE= 32
    MIN_ADDRESS_RESPONSE_SIZE= 39

    # status words
    SW_OK= 0x9000
    SW_EXECUTION_ERROR= 0x6400
    SW_WRONG_LENGTH= 0x6700
    SW_EMPTY_BUFFER= 0x6982
    SW_OUTPUT_BUFFER_TOO_SMALL= 0x6983
    SW_DATA_INVALID= 0x6984
    SW_CONDITIONS_NOT_SATISFIED= 0x6985
    SW_COMMAND_NOT_ALLOWED= 0x6986
    SW_BAD_KEY_HANDLE= 0x6A80
    SW_INVALID_P1P2= 0x6B00
    SW_INS_NOT_SUPPORTED= 0x6D00
    SW_CLA_NOT_SUPPORTED= 0x6E00
    SW_UNKNOWN= 0x6F00
    SW_SIGN_VERIFY_ERROR= 0x6F01

    # statuses for which the device explains the refusal in the response body
    SW_REJECTIONS= (SW_BAD_KEY_HANDLE, SW_DATA_INVALID, SW_COMMAND_NOT_ALLOWED)

    SW_MESSAGES= {
        SW_EXECUTION_ERROR: "[APDU_CODE_EXECUTION_ERROR] No information given (NV-Ram not changed)",
        SW_WRONG_LENGTH: "[APDU_CODE_WRONG_LENGTH] Wrong length",
        SW_EMPTY_BUFFER: "[APDU_CODE_EMPTY_BUFFER]",
        SW_OUTPUT_BUFFER_TOO_SMALL: "[APDU_CODE_OUTPUT_BUFFER_TOO_SMALL]",
        SW_DATA_INVALID: "[APDU_CODE_DATA_INVALID] Referenced data reversibly blocked (invalidated)",
        SW_CONDITIONS_NOT_SATISFIED: "[APDU_CODE_CONDITIONS_NOT_SATISFIED] Conditions of use not satisfied",
        SW_COMMAND_NOT_ALLOWED: "[APDU_CODE_COMMAND_NOT_ALLOWED] Sign request rejected",
        SW_BAD_KEY_HANDLE: "[APDU_CODE_BAD_KEY_HANDLE] The parameters in the data field are incorrect",
        SW_INVALID_P1P2: "[APDU_CODE_INVALIDP1P2] Wrong parameter(s) P1-P2",
        SW_INS_NOT_SUPPORTED: "[APDU_CODE_INS_NOT_SUPPORTED] Instruction code not supported or invalid",
        SW_CLA_NOT_SUPPORTED: "[APDU_CODE_CLA_NOT_SUPPORTED] Class not supported",
        SW_UNKNOWN: "[APDU_CODE_UNKNOWN] Unknown",
        SW_SIGN_VERIFY_ERROR: "[APDU_CODE_SIGN_VERIFY_ERROR] Sign/verify error",
    }

    # USB HID
    LEDGER_VENDOR_ID= 0x2C97
    LEDGER_USAGE_PAGE= 0xFFA0
