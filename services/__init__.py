"""
Holder, dev-sold and volume lookups used by the evaluation pipeline
"""
