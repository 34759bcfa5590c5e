"""HTTP surface of the discussion parser."""
