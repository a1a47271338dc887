"""Battle system: entities, combat engines, arena managers and battle history."""
