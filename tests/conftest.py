from hypothesis import settings

# Register snapshots copy the whole bank, so example timing varies with precision
settings.register_profile("cardinality", deadline=None)
settings.load_profile("cardinality")
