"""Release records, their action outcomes and the duplicate guards built on them."""
