"""Student progress tracking: level and lesson progress resolution."""
