"""Pytest configuration and fixtures for SwiftSpy tests."""

import os

import pytest
from hypothesis import Verbosity, settings

from swiftspy.config import EmitterConfig, GeneratorConfig
from swiftspy.emitters.swift import SwiftEmitter
from swiftspy.generator.orchestrator import SpyGenerator

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def generator() -> SpyGenerator:
    return SpyGenerator(GeneratorConfig())


@pytest.fixture
def emitter() -> SwiftEmitter:
    return SwiftEmitter(EmitterConfig())


@pytest.fixture
def fetch_protocol() -> str:
    """Swift source of a small annotated protocol."""
    return '''\
import Foundation

@Spyable(behindPreprocessorFlag: "DEBUG")
protocol Service {
    var name: String { get set }
    func fetch(id: Int) -> String
    func save() async throws
}
'''
