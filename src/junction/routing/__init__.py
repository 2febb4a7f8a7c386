"""Routing — ordered route tables with first-registered-wins matching.

Routes are registered during setup through fluent builders and compiled
into immutable definitions when the app freezes.
"""
