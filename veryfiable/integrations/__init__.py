"""veryfiable.integrations

External systems: the EAS SchemaRegistry and the registration workflow on top of it.
"""
