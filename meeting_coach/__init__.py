"""Meeting Coach: live perception agent + throttled negotiation coach."""
