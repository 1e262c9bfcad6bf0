"""
Projects application.

Projects and their milestones. The escrow and arbitration engines read
who the employer and contractor are, read milestone amounts, and move the
project status forward (assigned -> in_progress -> disputed -> completed).
"""
