"""Gov2Biz multi-tenant request pipeline."""
