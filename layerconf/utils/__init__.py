"""Supporting utilities: mappings, locking, conversion, diffing, events and watching."""
