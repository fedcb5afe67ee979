"""Execution planning: ready-set resolution, parallel clustering, plan building
and critical path analysis over an in-memory operation set."""
