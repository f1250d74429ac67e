"""Configuration, logging, errors and metrics shared by all layers."""
