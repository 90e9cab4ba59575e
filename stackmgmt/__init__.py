# -----------------------------------------------------------------------------
# STACKMGMT
# -----------------------------------------------------------------------------
# Stack lifecycle settings for Pulumi Cloud stacks: TTL, drift schedule,
# deployment settings, purge tag and team access.
# -----------------------------------------------------------------------------

__version__ = "1.0.0"
