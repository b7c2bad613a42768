# Core package - gateway configuration
#
# Modules:
# - config: Configuration groups, defaults and the start-up validation gate
# - errors: Configuration error hierarchy
# - paths: Application data directory and default file locations
# - schema: Dotted option schema and structural overrides
# - loader: Environment binding
# - logging: Structured logging
# - storage: Database backend selection
