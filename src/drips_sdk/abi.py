"""
Contract ABIs for the Drips contracts.

Only the functions the SDK calls are listed.
"""

# Shared struct components
_SPLITS_RECEIVER = [
    {"name": "userId", "type": "uint256"},
    {"name": "weight", "type": "uint32"},
]

_DRIPS_RECEIVER = [
    {"name": "userId", "type": "uint256"},
    {"name": "config", "type": "uint256"},
]

_USER_METADATA = [
    {"name": "key", "type": "bytes32"},
    {"name": "value", "type": "bytes"},
]

_DRIPS_HISTORY = [
    {"name": "dripsHash", "type": "bytes32"},
    {"name": "receivers", "type": "tuple[]", "components": _DRIPS_RECEIVER},
    {"name": "updateTime", "type": "uint32"},
    {"name": "maxEnd", "type": "uint32"},
]

_CALL = [
    {"name": "target", "type": "address"},
    {"name": "data", "type": "bytes"},
    {"name": "value", "type": "uint256"},
]


def _account_functions(subject: list[dict]) -> list[dict]:
    """
    Functions every driver exposes for its accounts.

    `subject` holds the leading identifier input (empty for AddressDriver,
    where the account is the sender).
    """
    return [
        {
            "type": "function",
            "name": "collect",
            "inputs": [
                *subject,
                {"name": "erc20", "type": "address"},
                {"name": "transferTo", "type": "address"},
            ],
            "outputs": [{"name": "amt", "type": "uint128"}],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "give",
            "inputs": [
                *subject,
                {"name": "receiver", "type": "uint256"},
                {"name": "erc20", "type": "address"},
                {"name": "amt", "type": "uint128"},
            ],
            "outputs": [],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "setSplits",
            "inputs": [
                *subject,
                {"name": "receivers", "type": "tuple[]", "components": _SPLITS_RECEIVER},
            ],
            "outputs": [],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "setDrips",
            "inputs": [
                *subject,
                {"name": "erc20", "type": "address"},
                {"name": "currReceivers", "type": "tuple[]", "components": _DRIPS_RECEIVER},
                {"name": "balanceDelta", "type": "int128"},
                {"name": "newReceivers", "type": "tuple[]", "components": _DRIPS_RECEIVER},
                {"name": "maxEndHint1", "type": "uint32"},
                {"name": "maxEndHint2", "type": "uint32"},
                {"name": "transferTo", "type": "address"},
            ],
            "outputs": [{"name": "realBalanceDelta", "type": "int128"}],
            "stateMutability": "nonpayable",
        },
        {
            "type": "function",
            "name": "emitUserMetadata",
            "inputs": [
                *subject,
                {"name": "userMetadata", "type": "tuple[]", "components": _USER_METADATA},
            ],
            "outputs": [],
            "stateMutability": "nonpayable",
        },
    ]


# Drips hub ABI
DRIPS_ABI = [
    # Read functions
    {
        "type": "function",
        "name": "cycleSecs",
        "inputs": [],
        "outputs": [{"type": "uint32"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "splittable",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
        ],
        "outputs": [{"name": "amt", "type": "uint128"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "collectable",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
        ],
        "outputs": [{"name": "amt", "type": "uint128"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "receivableDripsCycles",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
        ],
        "outputs": [{"name": "cycles", "type": "uint32"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "receiveDripsResult",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
            {"name": "maxCycles", "type": "uint32"},
        ],
        "outputs": [{"name": "receivableAmt", "type": "uint128"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "dripsState",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
        ],
        "outputs": [
            {"name": "dripsHash", "type": "bytes32"},
            {"name": "dripsHistoryHash", "type": "bytes32"},
            {"name": "updateTime", "type": "uint32"},
            {"name": "balance", "type": "uint128"},
            {"name": "maxEnd", "type": "uint32"},
        ],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "balanceAt",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
            {"name": "receivers", "type": "tuple[]", "components": _DRIPS_RECEIVER},
            {"name": "timestamp", "type": "uint32"},
        ],
        "outputs": [{"name": "balance", "type": "uint128"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "splitsHash",
        "inputs": [{"name": "userId", "type": "uint256"}],
        "outputs": [{"name": "currSplitsHash", "type": "bytes32"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "hashSplits",
        "inputs": [{"name": "receivers", "type": "tuple[]", "components": _SPLITS_RECEIVER}],
        "outputs": [{"name": "receiversHash", "type": "bytes32"}],
        "stateMutability": "pure",
    },
    {
        "type": "function",
        "name": "hashDrips",
        "inputs": [{"name": "receivers", "type": "tuple[]", "components": _DRIPS_RECEIVER}],
        "outputs": [{"name": "dripsHash", "type": "bytes32"}],
        "stateMutability": "pure",
    },
    {
        "type": "function",
        "name": "splitResult",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "currReceivers", "type": "tuple[]", "components": _SPLITS_RECEIVER},
            {"name": "amount", "type": "uint128"},
        ],
        "outputs": [
            {"name": "collectableAmt", "type": "uint128"},
            {"name": "splitAmt", "type": "uint128"},
        ],
        "stateMutability": "view",
    },
    # Write functions
    {
        "type": "function",
        "name": "receiveDrips",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
            {"name": "maxCycles", "type": "uint32"},
        ],
        "outputs": [{"name": "receivedAmt", "type": "uint128"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "squeezeDrips",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
            {"name": "senderId", "type": "uint256"},
            {"name": "historyHash", "type": "bytes32"},
            {"name": "dripsHistory", "type": "tuple[]", "components": _DRIPS_HISTORY},
        ],
        "outputs": [{"name": "amt", "type": "uint128"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "split",
        "inputs": [
            {"name": "userId", "type": "uint256"},
            {"name": "erc20", "type": "address"},
            {"name": "currReceivers", "type": "tuple[]", "components": _SPLITS_RECEIVER},
        ],
        "outputs": [
            {"name": "collectableAmt", "type": "uint128"},
            {"name": "splitAmt", "type": "uint128"},
        ],
        "stateMutability": "nonpayable",
    },
]

# AddressDriver ABI (the account is always the sender's)
ADDRESS_DRIVER_ABI = [
    {
        "type": "function",
        "name": "calcUserId",
        "inputs": [{"name": "userAddr", "type": "address"}],
        "outputs": [{"name": "userId", "type": "uint256"}],
        "stateMutability": "view",
    },
    *_account_functions([]),
]

# NFTDriver ABI (accounts are identified by token ID)
NFT_DRIVER_ABI = [
    {
        "type": "function",
        "name": "nextTokenId",
        "inputs": [],
        "outputs": [{"name": "tokenId", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "ownerOf",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "owner", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "mint",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "userMetadata", "type": "tuple[]", "components": _USER_METADATA},
        ],
        "outputs": [{"name": "tokenId", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "safeMint",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "userMetadata", "type": "tuple[]", "components": _USER_METADATA},
        ],
        "outputs": [{"name": "tokenId", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    *_account_functions([{"name": "tokenId", "type": "uint256"}]),
]

# RepoDriver ABI (accounts are identified by forge + repository name)
REPO_DRIVER_ABI = [
    {
        "type": "function",
        "name": "calcUserId",
        "inputs": [
            {"name": "forge", "type": "uint8"},
            {"name": "name", "type": "bytes"},
        ],
        "outputs": [{"name": "userId", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "ownerOf",
        "inputs": [{"name": "userId", "type": "uint256"}],
        "outputs": [{"name": "owner", "type": "address"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "requestUpdateOwner",
        "inputs": [
            {"name": "forge", "type": "uint8"},
            {"name": "name", "type": "bytes"},
        ],
        "outputs": [{"name": "userId", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
    *_account_functions([{"name": "userId", "type": "uint256"}]),
]

# ImmutableSplitsDriver ABI
IMMUTABLE_SPLITS_DRIVER_ABI = [
    {
        "type": "function",
        "name": "nextUserId",
        "inputs": [],
        "outputs": [{"name": "userId", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "createSplits",
        "inputs": [
            {"name": "receivers", "type": "tuple[]", "components": _SPLITS_RECEIVER},
            {"name": "userMetadata", "type": "tuple[]", "components": _USER_METADATA},
        ],
        "outputs": [{"name": "userId", "type": "uint256"}],
        "stateMutability": "nonpayable",
    },
]

# Caller ABI
CALLER_ABI = [
    {
        "type": "function",
        "name": "callBatched",
        "inputs": [{"name": "calls", "type": "tuple[]", "components": _CALL}],
        "outputs": [{"name": "returnData", "type": "bytes[]"}],
        "stateMutability": "payable",
    },
]

# Minimal ERC20 ABI
ERC20_ABI = [
    {
        "type": "function",
        "name": "approve",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "allowance",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"type": "uint256"}],
        "stateMutability": "view",
    },
]
