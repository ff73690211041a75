# Domain helpers: catalog, scheduling, progress persistence and drill evaluation
