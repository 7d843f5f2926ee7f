"""Flashdeck command line interface."""
