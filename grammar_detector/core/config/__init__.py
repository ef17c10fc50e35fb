"""Configuration: detector record, user config file, DI container"""
