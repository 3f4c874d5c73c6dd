# doorway/deps.py
from fastapi import Request

from .config import Config
from .intake import QuoteIntake
from .services.integrations import Integrations
from .workflow import JobWorkflow

# Everything is built once in main.create_app and hung off app.state;
# these just hand it to the routes.


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_store(request: Request):
    return request.app.state.store


def get_integrations(request: Request) -> Integrations:
    return request.app.state.integrations


def get_workflow(request: Request) -> JobWorkflow:
    return request.app.state.workflow


def get_intake(request: Request) -> QuoteIntake:
    return request.app.state.intake


def get_geocoder(request: Request):
    return request.app.state.geocoder
