"""
Service layer.

- qr_code_service: owner-facing create/list/get/update/delete
- redirect_service: slug resolution and the public scan flow
- visit_recorder: persists one Visit per scan
- geolocation: best-effort IP -> location lookup
- analytics_service: per-QR-code visit statistics
"""
