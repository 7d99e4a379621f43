"""
Default parameters for the VRF lottery.

These values define the public rules of a round.
Changing them changes who can enter and when a draw happens, so they
MUST be publicly announced before a deployment picks them up.
"""

# Native currency uses 18 decimals (wei)
NATIVE_DECIMALS = 18

# Entry fee in wei
ENTRANCE_FEE_WEI = 10**16  # 0.01 native unit

# Minimum seconds between draws
INTERVAL_S = 30

# Oracle request parameters
KEY_HASH = "0x787d74caea10b2b357790d5b5247c2f63d1d91572a9846f780606e4d953677ae"
SUBSCRIPTION_ID = 0
CALLBACK_GAS_LIMIT = 500_000
REQUEST_CONFIRMATIONS = 3
NUM_WORDS = 1
NATIVE_PAYMENT = False

# Address the engine accepts fulfillments from when none is configured
LOCAL_COORDINATOR_LABEL = "local-vrf-coordinator"
