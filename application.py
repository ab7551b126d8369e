"""
ServiceRig Dashboard Application
Field-service management: scheduling, customers, estimates, invoicing,
inventory and AI-assisted estimating.

MODULAR ARCHITECTURE:
- app_init.py: application factory (config, logging, security, store, services)
- app/api/: Flask Blueprints for pages and the JSON API
- services/: repositories over the mock store and the business services
- services/ai_flows.py: prompt flows sent through ai_service.py
- database/: mock store, record vocabulary, seed data and batch import

Run locally with ``flask --app application run`` or ``python application.py``.
"""
import os

from app_init import create_app

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=app.config.get('DEBUG', False))
