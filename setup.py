from setuptools import setup

setup(
    name='pyBookBuild',
    version='0.1.0',
    author="J M Franck",
    description="Build HTML, PDF, EPUB and JSON editions of a Markdown book with pandoc",
    packages=['pybookbuild', 'pybookbuild.assets'],
    python_requires='>=3.10',
    install_requires=[
        'PyYAML',
        'watchdog',
    ],
    extras_require=dict(
        test=['pytest'],
    ),
    entry_points=dict(
        console_scripts=["pybb = pybookbuild.command_line:main",])
)
