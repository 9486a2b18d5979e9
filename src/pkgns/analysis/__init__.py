"""
Build-time analysis: manifests, dependency graph, namespaces.
"""
