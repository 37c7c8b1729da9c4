"""Allow running as: python -m learnsync"""
from learnsync.cli.main import main

main()
