"""
===============================================================================
GNC PROJECT - Core Module
===============================================================================
Mission-wide building blocks shared by the other subsystems.

Submodules:
    constants     -- Timeline sentinels, time units and validity map defaults
    validity_map  -- Piecewise time-validity map (spans, transitions, expunge)
    config        -- YAML configuration and logging setup
===============================================================================
"""
