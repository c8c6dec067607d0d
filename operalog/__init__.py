"""OperaLog: personal opera catalog, wishlist, and watched log."""
