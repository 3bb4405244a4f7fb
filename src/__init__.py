"""
Gmail Rule Repair - fix email rules from natural-language corrections
"""
