from setuptools import setup, find_packages

setup(
    name="sign_cam",
    version="0.2.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "opencv-python>=4.8.0",
        "numpy>=1.21.0",
        "mediapipe>=0.10.9",
        "requests>=2.28.0",
        "tqdm>=4.64.0",
        "pyttsx3>=2.90",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "sign-cam=sign_cam.live_signs:main",
        ],
    },
    python_requires=">=3.9",
    author="Raul Adell",
    description="Real-time ASL letter recognition from hand landmarks",
    long_description="Rule-based ASL letter recognition over MediaPipe hand landmarks with a rate-limited live detection loop",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
