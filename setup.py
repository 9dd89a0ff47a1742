"""Setup script for the Gemini voice chatbot."""

from setuptools import setup, find_namespace_packages

setup(
    name="gemini-voice-chatbot",
    version="1.0.0",
    description="Terminal chat client for Gemini with voice input and spoken replies",
    packages=find_namespace_packages(include=["chatbot", "chatbot.*", "mocks"]),
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0.0",
        "google-generativeai>=0.8.0",
        "elevenlabs>=2.0.0",
        "pygame>=2.5.0",
        "SpeechRecognition>=3.10.0",
        "pyperclip>=1.8.0",
        "structlog>=23.0.0",
        "click>=8.0.0",
    ],
    extras_require={
        "microphone": ["PyAudio>=0.2.13"],
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "chatbot=chatbot.cli.main:cli",
        ],
    },
)
