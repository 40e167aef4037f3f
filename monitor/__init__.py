"""
Discovery, evaluation and scheduling of new mint candidates
"""
