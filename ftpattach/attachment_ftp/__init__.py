"""
Django app storing model attachments on a remote FTP server.
"""
