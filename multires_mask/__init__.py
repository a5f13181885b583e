"""Resolution-adaptive mask erosion for masked similarity metrics.

Modules:
  masks             Mask type, NIfTI decode, per-role mask ownership
  erosion           per-level erosion radii and ball erosion
  lifecycle         four-phase metric lifecycle controller
  config            command-line + parameter-file configuration store
  metric            masked similarity-metric collaborator
  pyramid, driver   multi-resolution schedule and reference driver
  profiling         timers and step timing
  run_registration  CLI entry point
"""

__version__ = "0.1.0"
