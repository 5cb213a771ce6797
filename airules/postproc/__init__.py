"""Post-processing applied to rendered documents."""
