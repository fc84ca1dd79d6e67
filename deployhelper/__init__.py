"""deployhelper: stage, preview and run SFTP deployments from an interactive prompt"""
__version__ = "1.0.0"
