"""
Setup file for the Interview Agent package.
"""
from setuptools import setup, find_packages

setup(
    name="interview_agent",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "langchain-core>=0.2.0",
        "langgraph>=0.2.0",
        "langchain-google-genai>=1.0.0",
        "pydantic>=2.5.2",
        "python-dotenv>=1.0.0",
        "typing-extensions>=4.8.0",
        "pymongo>=4.6.0",
        "motor>=3.3.0",
        "httpx>=0.25.0",
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "slowapi>=0.1.9",
        "apscheduler>=3.10.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "interview-agent=interview_agent.cli:cli",
        ],
    },
    python_requires=">=3.9",
    author="AI Interviewer Team",
    author_email="your.email@example.com",
    description="Stage-driven session agent for AI technical interviews",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
