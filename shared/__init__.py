"""
Data formats shared by the save and load commands.
"""
