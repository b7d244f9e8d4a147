"""
Vision components: the hand landmark model and its loader.
"""
