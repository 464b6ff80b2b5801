"""Demo scenes wiring the mate engine into PyChrono systems."""
