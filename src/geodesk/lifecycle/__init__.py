"""Project lifecycle: state machine, capability checks and the controller."""
