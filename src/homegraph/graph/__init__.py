"""Household knowledge graph.

The graph is rebuilt from the record store on every call: records become typed
nodes, and a list of small heuristic rules infers edges between them (vendor
names inside task titles, spending tagged with a vendor name, and so on). The
matching is deliberately loose string containment, not foreign keys.
"""
