"""
inventory_ingestion -- bulk CSV import of stock bookings and products.

Reads rows with a streaming source adapter, parses dates and locale
decimals, resolves project/product/location references and books each
accepted row through the kernel BookingService.  Per-row problems become
rejections in the ImportReport; they never fail the whole file.

Architecture:
    inventory_ingestion/ is a top-level package.  Nothing in
    inventory_kernel/ imports from ingestion.
"""
